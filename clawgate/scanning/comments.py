"""Comment removal for submitted scripts."""

from __future__ import annotations

from typing import List

from .lexer import BLOCK_COMMENT, LINE_COMMENT, scan_segments

# A single pass is stable for ordinary code; pathological inputs whose removed
# comments expose new ones get a few more passes.
_MAX_PASSES = 8


def strip_comments(source: str) -> str:
    """Return ``source`` without ``//`` and ``/* */`` comments.

    Markers inside string, template or regex literals are left untouched.
    Line comments are removed up to (not including) the newline; a block
    comment becomes a single space, or the newlines it spanned, so removing it
    never joins the tokens on either side. The result is stable under
    re-stripping.
    """
    if "/" not in source:
        return source
    text = source
    for _ in range(_MAX_PASSES):
        stripped = _strip_once(text)
        if stripped == text:
            break
        text = stripped
    return text


def _strip_once(source: str) -> str:
    parts: List[str] = []
    for segment in scan_segments(source):
        if segment.kind == LINE_COMMENT:
            continue
        if segment.kind == BLOCK_COMMENT:
            newlines = source.count("\n", segment.start, segment.end)
            parts.append("\n" * newlines if newlines else " ")
            continue
        parts.append(source[segment.start : segment.end])
    return "".join(parts)


__all__ = ["strip_comments"]
