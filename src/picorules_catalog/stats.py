from __future__ import annotations

from typing import TYPE_CHECKING

from picorules_catalog.models import ParsingStats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from picorules_catalog.models import ParsedVariable


def calculate_stats(variables: Sequence[ParsedVariable], /) -> ParsingStats:
    """Summarize a variable set. An empty set gives all-zero counters."""
    functional = sum(1 for v in variables if v.statement_type == 'functional')
    with_label = sum(1 for v in variables if v.label)

    return ParsingStats(
        total_variables=len(variables),
        functional_count=functional,
        conditional_count=len(variables) - functional,
        with_metadata_count=with_label,
        without_metadata_count=len(variables) - with_label,
        total_ruleblocks=len({v.ruleblock for v in variables}),
        with_template_references_count=sum(
            1 for v in variables if v.referenced_in_templates
        ),
    )
