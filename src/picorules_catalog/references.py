"""EADV attribute and variable dependency extraction for single statements.

Dependency extraction is an ordered pipeline of text transforms. Each step
removes spans that an earlier step already classified, so the bare identifier
scan at the end only sees what is left:

    1. collect cross-block bindings   rout_ckd.ckd.val.bind()  -> rout_ckd.ckd
    2. remove those bindings
    3. remove EADV references         eadv.lab_ua_acr.val.last()
    4. remove method call suffixes    .last(), .bind()
    5. scan for bare identifiers, minus keywords, self, 1-char and numbers
    6. de-duplicate in first-seen order
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

EADV_MARKER: Final = 'eadv.'
EADV_MULTI_RE: Final = re.compile(r'eadv\.\[([^\]]+)\]')
EADV_SINGLE_RE: Final = re.compile(r'eadv\.([a-zA-Z_][a-zA-Z0-9_%]*)\.')

RULEBLOCK_BINDING_RE: Final = re.compile(
    r'rout_([a-zA-Z_][a-zA-Z0-9_]*)\.([a-zA-Z_][a-zA-Z0-9_]*)\.'
)
EADV_SPAN_RE: Final = re.compile(r'eadv\.\S+')
METHOD_CALL_RE: Final = re.compile(r'\.[a-zA-Z_]+\([^)]*\)')
IDENTIFIER_RE: Final = re.compile(r'\b([a-zA-Z_][a-zA-Z0-9_]*)\b', re.ASCII)

KEYWORDS: Final = frozenset(
    {
        'and',
        'or',
        'not',
        'where',
        'sysdate',
        'coalesce',
        'greatest',
        'least',
        'least_date',
        'round',
        'ceil',
        'floor',
        'abs',
        'nvl',
        'decode',
        'case',
        'when',
        'then',
        'else',
        'end',
        'concat',
        'substr',
        'instr',
        'eadv',
        'val',
        'dt',
        'att',
        'eid',
    }
)


def parse_eadv_attributes(statement: str, /) -> str:
    """
    Extract EADV attribute names referenced by a functional statement.

    Patterns:
    - Multiple attributes: `eadv.[icd_n17%, icd_n18%].dt.max()`
    - Single attribute: `eadv.lab_ua_acr.val.last()`

    The bracketed form wins when both are present.

    Args:
        statement: A single trimmed statement.

    Returns:
        Comma-joined attribute names in source order, or `''`.
    """
    if EADV_MARKER not in statement:
        return ''

    if (match := EADV_MULTI_RE.search(statement)) is not None:
        return ','.join(attr.strip() for attr in match[1].split(','))

    if (match := EADV_SINGLE_RE.search(statement)) is not None:
        return match[1]

    return ''


def find_ruleblock_bindings(statement: str, /) -> list[str]:
    """Return every `rout_<block>.<name>` binding, in order."""
    return [
        f'rout_{block}.{name}'
        for block, name in RULEBLOCK_BINDING_RE.findall(statement)
    ]


def remove_ruleblock_bindings(statement: str, /) -> str:
    return RULEBLOCK_BINDING_RE.sub('', statement)


def remove_eadv_references(statement: str, /) -> str:
    return EADV_SPAN_RE.sub('', statement)


def remove_method_calls(statement: str, /) -> str:
    return METHOD_CALL_RE.sub('', statement)


DEPENDENCY_TRANSFORMS: Final[tuple[Callable[[str], str], ...]] = (
    remove_ruleblock_bindings,
    remove_eadv_references,
    remove_method_calls,
)


def is_dependency_candidate(token: str, var_name: str, /) -> bool:
    return (
        token.lower() not in KEYWORDS
        and token != var_name
        and len(token) > 1
        and not token.isdigit()
    )


def find_bare_identifiers(text: str, var_name: str, /) -> list[str]:
    """Scan for identifiers that may name other variables, in order."""
    return [
        token
        for token in IDENTIFIER_RE.findall(text)
        if is_dependency_candidate(token, var_name)
    ]


def _unique(items: Iterable[str], /) -> list[str]:
    return list(dict.fromkeys(items))


def parse_variable_dependencies(statement: str, var_name: str, /) -> str:
    """
    Extract the variables a statement depends on.

    Args:
        statement: A single trimmed statement.
        var_name: The variable the statement defines; never reported.

    Returns:
        Comma-joined, de-duplicated dependencies in first-seen order, with
        cross-block bindings first, or `''` when there are none.
    """
    bindings = find_ruleblock_bindings(statement)

    residual = statement
    for transform in DEPENDENCY_TRANSFORMS:
        residual = transform(residual)

    return ','.join(_unique([*bindings, *find_bare_identifiers(residual, var_name)]))
