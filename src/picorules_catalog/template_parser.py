"""Variable references in Jinja-style report templates.

Four pattern classes are recognised, each capturing a `ruleblock.variable`
pair:

1. conditional blocks   `{% if ckd.egfr_last %}`, `{% if ckd.stage > 3 %}`
2. picoformat calls     `{{ picoformat('ckd.egfr_last') }}`
3. picodate calls       `{{ picodate('ckd.egfr_last_dt') }}`
4. bare spans           `{{ ckd.egfr_last }}`, `{% ckd.egfr_last %}`

Class 4 overlaps the others and is deliberately broad.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import TYPE_CHECKING, Final

from picorules_catalog.models import TemplateReference

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from picorules_catalog.models import ParsedVariable

_PAIR: Final = r'[a-zA-Z_][a-zA-Z0-9_]*\.[a-zA-Z_][a-zA-Z0-9_]*'

REFERENCE_PATTERNS: Final = (
    re.compile(rf'{{%\s*if\s+({_PAIR})'),
    re.compile(rf'picoformat\([\'"]({_PAIR})[\'"]\)'),
    re.compile(rf'picodate\([\'"]({_PAIR})[\'"]\)'),
    re.compile(rf'[{{][{{%]\s*({_PAIR})\s*[}}%][}}]'),
)


def extract_variable_references(content: str, /) -> list[str]:
    """
    Extract unique `ruleblock.variable` references from template source.

    Args:
        content: Template file content.

    Returns:
        References in first-seen order (by pattern class, then position).
    """
    references: dict[str, None] = {}
    for pattern in REFERENCE_PATTERNS:
        for reference in pattern.findall(content):
            references.setdefault(reference)
    return list(references)


def parse_template_file(content: str, template_name: str, /) -> TemplateReference:
    return TemplateReference(
        template_name=template_name,
        variable_references=tuple(extract_variable_references(content)),
    )


def parse_template_files(files: Mapping[str, str], /) -> list[TemplateReference]:
    """Parse every template, ordered by template name."""
    return [parse_template_file(files[name], name) for name in sorted(files)]


def build_template_reference_map(
    template_references: Iterable[TemplateReference], /
) -> dict[str, list[str]]:
    """
    Build a reverse index from `ruleblock.variable` to template names.

    Template names keep encounter order and appear at most once per key.
    """
    reverse_map: dict[str, list[str]] = {}

    for template in template_references:
        for reference in template.variable_references:
            names = reverse_map.setdefault(reference, [])
            if template.template_name not in names:
                names.append(template.template_name)

    return reverse_map


def annotate_template_references(
    variables: Sequence[ParsedVariable],
    template_references: Iterable[TemplateReference],
    /,
) -> list[ParsedVariable]:
    """
    Join the reverse index onto variable records by `ruleblock.variable`.

    Every record sharing a key receives the same template list. Must run
    after all rule blocks and templates have been parsed.

    Returns:
        New records with `referenced_in_templates` set (`''` when none).
    """
    reverse_map = build_template_reference_map(template_references)

    return [
        replace(
            variable,
            referenced_in_templates=','.join(reverse_map.get(variable.key, ())),
        )
        for variable in variables
    ]
