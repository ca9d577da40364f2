"""Lexical scanners used by the validation stages."""

from .comments import strip_comments
from .contract import GameObject, find_game_object, find_methods
from .forbidden import collapse_whitespace, scan_advisories, scan_forbidden
from .html import HtmlDocument, HtmlParseError, missing_tags, parse_html
from .lexer import pair_index, scan_segments, tokenize

__all__ = [
    "GameObject",
    "HtmlDocument",
    "HtmlParseError",
    "collapse_whitespace",
    "find_game_object",
    "find_methods",
    "missing_tags",
    "pair_index",
    "parse_html",
    "scan_advisories",
    "scan_forbidden",
    "scan_segments",
    "strip_comments",
    "tokenize",
]
