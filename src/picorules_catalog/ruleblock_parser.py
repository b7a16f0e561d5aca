"""Statement-level extraction of variables from Picorules rule blocks.

A rule block is a sequence of `;`-terminated statements. Two statement shapes
define a variable:

    functional:   egfr_last => eadv.lab_bld_egfr.val.last();
    conditional:  ckd_stage : { egfr_last < 15 => 5 }, { => 0 };

Any other shape (including `#` directives) is skipped.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from picorules_catalog.common import RULEBLOCK_SUFFIX
from picorules_catalog.directives import parse_define_attribute, parse_doc
from picorules_catalog.models import ParsedVariable
from picorules_catalog.references import (
    parse_eadv_attributes,
    parse_variable_dependencies,
)
from picorules_catalog.source_cleaner import strip_comments

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from picorules_catalog._types import StatementType

STATEMENT_TERMINATOR: Final = ';'
DIRECTIVE_MARKER: Final = '#'
FUNCTIONAL_HEAD_RE: Final = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)\s*=>')
CONDITIONAL_HEAD_RE: Final = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)\s*:')


def ruleblock_name(file_name: str, /) -> str:
    """Derive the rule-block identifier from a file name (`ckd.prb` -> `ckd`)."""
    return file_name.removesuffix(RULEBLOCK_SUFFIX)


def split_statements(clean_content: str, /) -> Iterator[str]:
    """Yield trimmed statements that are neither empty nor directives."""
    for fragment in clean_content.split(STATEMENT_TERMINATOR):
        statement = fragment.strip()
        if not statement or statement.startswith(DIRECTIVE_MARKER):
            continue
        yield statement


def classify_statement(statement: str, /) -> tuple[str, StatementType] | None:
    """
    Classify a trimmed statement by its head.

    Returns:
        `(variable, statement_type)`, or None when the statement defines no
        variable. The functional form is checked first, so `x => a : b` is
        functional.
    """
    if (match := FUNCTIONAL_HEAD_RE.match(statement)) is not None:
        return match[1], 'functional'

    if (match := CONDITIONAL_HEAD_RE.match(statement)) is not None:
        return match[1], 'conditional'

    return None


def _build_variable(
    content: str,
    ruleblock: str,
    statement: str,
    var_name: str,
    statement_type: StatementType,
    /,
) -> ParsedVariable:
    attributes = parse_define_attribute(content, var_name)

    return ParsedVariable(
        ruleblock=ruleblock,
        variable=var_name,
        statement_type=statement_type,
        statement=statement,
        label=attributes.label or '',
        description=parse_doc(content, var_name),
        type=attributes.type or '',
        is_reportable=attributes.is_reportable or '',
        is_bi_obj=attributes.is_bi_obj or '',
        # Conditional statements never query EADV
        eadv_attributes=parse_eadv_attributes(statement)
        if statement_type == 'functional'
        else '',
        depends_on=parse_variable_dependencies(statement, var_name),
    )


def extract_variables_from_content(
    content: str, ruleblock: str, /
) -> list[ParsedVariable]:
    """
    Extract all variables defined by one rule block.

    Args:
        content: Raw rule-block source. Directives are looked up against this
            unstripped text.
        ruleblock: Rule-block identifier stored on every record.

    Returns:
        One record per functional or conditional statement, in source order.
    """
    variables: list[ParsedVariable] = []

    for statement in split_statements(strip_comments(content)):
        classified = classify_statement(statement)
        if classified is None:
            continue

        var_name, statement_type = classified
        variables.append(
            _build_variable(content, ruleblock, statement, var_name, statement_type)
        )

    return variables


def extract_variables_from_files(
    files: Mapping[str, str], /
) -> list[ParsedVariable]:
    """
    Extract variables from a mapping of rule-block file name to content.

    Files are processed in file-name order so the result does not depend on
    the order in which contents were fetched.
    """
    variables: list[ParsedVariable] = []
    for file_name in sorted(files):
        variables.extend(
            extract_variables_from_content(files[file_name], ruleblock_name(file_name))
        )
    return variables
