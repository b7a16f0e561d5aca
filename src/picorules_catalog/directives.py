"""Lookup of `#define_attribute` and `#doc` directives for a variable.

Directives are optional annotations that live anywhere in a rule block:

    #define_attribute(egfr_last, {
        label: "Last eGFR",
        type: 2,
        is_reportable: 1
    });

    #doc(egfr_last, { txt: "Most recent eGFR result" });

Only the first directive for a given name is used. A missing directive, or a
field that does not match its expected shape, simply leaves that field absent.
"""

from __future__ import annotations

import re
from typing import Final

from picorules_catalog.models import VariableMetadata

LABEL_RE: Final = re.compile(r'label\s*:\s*["\']([^"\']+)["\']')
TYPE_RE: Final = re.compile(r'type\s*:\s*(\d+)', re.ASCII)
IS_REPORTABLE_RE: Final = re.compile(r'is_reportable\s*:\s*(\d+)', re.ASCII)
IS_BI_OBJ_RE: Final = re.compile(r'is_bi_obj\s*:\s*(\d+)', re.ASCII)
TXT_RE: Final = re.compile(r'txt\s*:\s*["\']([^"\']+)["\']')


def _directive_body(directive: str, content: str, var_name: str, /) -> str | None:
    pattern = rf'#{directive}\({re.escape(var_name)}\s*,\s*\{{([^}}]+)\}}\s*\)'
    match = re.search(pattern, content, re.S)
    return match[1] if match is not None else None


def _field(pattern: re.Pattern[str], body: str, /) -> str | None:
    match = pattern.search(body)
    return match[1] if match is not None else None


def parse_define_attribute(content: str, var_name: str, /) -> VariableMetadata:
    """
    Extract the `#define_attribute` fields for `var_name`.

    Args:
        content: Full, unstripped rule-block source.
        var_name: Variable whose directive should be found.

    Returns:
        VariableMetadata with each field set when present; an empty instance
        when there is no directive for the name.
    """
    body = _directive_body('define_attribute', content, var_name)
    if body is None:
        return VariableMetadata()

    return VariableMetadata(
        label=_field(LABEL_RE, body),
        type=_field(TYPE_RE, body),
        is_reportable=_field(IS_REPORTABLE_RE, body),
        is_bi_obj=_field(IS_BI_OBJ_RE, body),
    )


def parse_doc(content: str, var_name: str, /) -> str:
    """Return the `txt` of the `#doc` directive for `var_name`, or `''`."""
    body = _directive_body('doc', content, var_name)
    if body is None:
        return ''
    return _field(TXT_RE, body) or ''
