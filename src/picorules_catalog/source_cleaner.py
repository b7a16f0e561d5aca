"""Comment removal for Picorules rule-block source."""

from __future__ import annotations

import re
from typing import Final

LINE_COMMENT_RE: Final = re.compile(r'//.*?$', re.M)
# Non-greedy: a block ends at the first closing marker, nesting is not supported
BLOCK_COMMENT_RE: Final = re.compile(r'/\*.*?\*/', re.S)


def strip_comments(content: str, /) -> str:
    """
    Remove `//` line comments and `/* ... */` block comments.

    Line comments are removed first, so a `//` inside a block comment cuts the
    rest of that line before block matching runs.

    Args:
        content: Raw rule-block source.

    Returns:
        The source with all comment spans removed. Text without comments is
        returned unchanged.
    """
    cleaned = LINE_COMMENT_RE.sub('', content)
    return BLOCK_COMMENT_RE.sub('', cleaned)
