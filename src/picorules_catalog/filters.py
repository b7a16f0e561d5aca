from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable

    from picorules_catalog.models import ParsedVariable

type TriState = Literal['all', 'yes', 'no']
type StatementTypeFilter = Literal['all', 'functional', 'conditional']


def _matches_tri_state(state: TriState, value: bool, /) -> bool:  # noqa: FBT001
    if state == 'yes':
        return value
    if state == 'no':
        return not value
    return True


@dataclass(frozen=True, slots=True)
class VariableFilter:
    """
    Browse filter over catalog records.

    Attributes:
        search_term: Case-insensitive substring of variable, label,
            description or rule block. Empty matches everything.
        ruleblock: Exact rule block, or 'all'.
        statement_type: 'functional', 'conditional' or 'all'.
        has_metadata: Whether a label is required ('yes') or forbidden ('no').
        is_reportable: Whether `is_reportable == '1'` is required or forbidden.
    """

    search_term: str = ''
    ruleblock: str = 'all'
    statement_type: StatementTypeFilter = 'all'
    has_metadata: TriState = 'all'
    is_reportable: TriState = 'all'

    def matches(self, variable: ParsedVariable, /) -> bool:
        if self.search_term:
            term = self.search_term.lower()
            if not any(
                term in text.lower()
                for text in (
                    variable.variable,
                    variable.label,
                    variable.description,
                    variable.ruleblock,
                )
            ):
                return False

        if self.ruleblock not in ('all', variable.ruleblock):
            return False

        if self.statement_type not in ('all', variable.statement_type):
            return False

        return _matches_tri_state(
            self.has_metadata, bool(variable.label)
        ) and _matches_tri_state(self.is_reportable, variable.is_reportable == '1')

    def apply(self, variables: Iterable[ParsedVariable], /) -> list[ParsedVariable]:
        return [variable for variable in variables if self.matches(variable)]


def ruleblock_options(variables: Iterable[ParsedVariable], /) -> list[str]:
    return sorted({variable.ruleblock for variable in variables})
