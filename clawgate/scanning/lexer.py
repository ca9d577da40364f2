"""Character-level JavaScript scanner shared by comment stripping and matching.

The scanner never builds a syntax tree. It walks the text once, jumping
between "interesting" characters with simple character-class searches, and
tracks just enough state to tell code apart from string, template, regex and
comment regions:

* single and double quoted strings (unterminated strings end at the newline),
* template literals, including nested ``${ ... }`` expressions,
* regex literals, recognised when the previous significant token allows an
  expression to start,
* line and block comments.

Every loop advances by at least one character and no pattern used here has
nested quantifiers, so scanning time is linear in the input length.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

CODE = "code"
STRING = "string"
TEMPLATE = "template"
REGEX = "regex"
LINE_COMMENT = "line_comment"
BLOCK_COMMENT = "block_comment"

NAME = "name"
PUNCT = "punct"
OTHER = "other"

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

_CODE_BREAK = re.compile(r"[\"'`/{}]")
_STRING_BREAK = {
    '"': re.compile(r'["\\\n]'),
    "'": re.compile(r"['\\\n]"),
}
_TEMPLATE_BREAK = re.compile(r"[`\\$]")
_REGEX_BREAK = re.compile(r"[/\\\[\]\n\r]")
_TOKEN = re.compile(
    r"(?P<space>\s+)"
    r"|(?P<name>(?:[^\W\d]|\$)[\w$]*)"
    r"|(?P<number>\d[\w.]*)"
    r"|(?P<punct>=>|===|!==|==|!=|<=|>=|\.\.\.|\S)"
)

# Keywords after which a slash starts a regex literal rather than a division.
_REGEX_KEYWORDS = frozenset(
    {
        "return",
        "typeof",
        "instanceof",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "case",
        "do",
        "else",
        "yield",
        "await",
    }
)


@dataclass(frozen=True)
class Segment:
    """A contiguous region of source text of a single lexical kind."""

    kind: str
    start: int
    end: int
    nested: bool = False


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int


def scan_segments(source: str) -> Iterator[Segment]:
    """Yield the lexical regions of ``source`` in order, covering all of it."""
    n = len(source)
    pos = 0
    depth = 0
    expressions: List[int] = []
    regex_ok = True
    no_regex_until = -1

    while pos < n:
        match = _CODE_BREAK.search(source, pos)
        index = match.start() if match else n
        if index > pos:
            allowed = _regex_allowed_after(source, pos, index)
            if allowed is not None:
                regex_ok = allowed
            yield Segment(CODE, pos, index, bool(expressions))
        if match is None:
            break

        char = source[index]
        nested = bool(expressions)

        if char == '"' or char == "'":
            end = _skip_string(source, index + 1, char)
            yield Segment(STRING, index, end, nested)
            regex_ok = False
            pos = end
            continue

        if char == "`" or (char == "}" and expressions and expressions[-1] == depth):
            if char == "}":
                expressions.pop()
            end, opened = _read_template(source, index + 1)
            yield Segment(TEMPLATE, index, end, bool(expressions))
            if opened:
                expressions.append(depth)
                regex_ok = True
            else:
                regex_ok = False
            pos = end
            continue

        if char == "{" or char == "}":
            if char == "{":
                depth += 1
            elif depth > 0:
                depth -= 1
            yield Segment(CODE, index, index + 1, nested)
            regex_ok = True
            pos = index + 1
            continue

        following = source[index + 1] if index + 1 < n else ""
        if following == "/":
            end = source.find("\n", index + 2)
            end = n if end == -1 else end
            yield Segment(LINE_COMMENT, index, end, nested)
            pos = end
            continue
        if following == "*":
            end = source.find("*/", index + 2)
            end = n if end == -1 else end + 2
            yield Segment(BLOCK_COMMENT, index, end, nested)
            pos = end
            continue

        if regex_ok and index > no_regex_until:
            end = _skip_regex(source, index + 1)
            if end is not None:
                yield Segment(REGEX, index, end, nested)
                regex_ok = False
                pos = end
                continue
            # Nothing on this line can close a regex opened here or later.
            line_end = source.find("\n", index)
            no_regex_until = n if line_end == -1 else line_end

        yield Segment(CODE, index, index + 1, nested)
        regex_ok = True
        pos = index + 1


def tokenize(source: str) -> List[Token]:
    """Split top-level code into name, punctuation, string and other tokens.

    Comment regions are dropped and code inside template expressions is
    folded into the enclosing template's single string token.
    """
    tokens: List[Token] = []
    for segment in scan_segments(source):
        if segment.nested or segment.kind in (LINE_COMMENT, BLOCK_COMMENT):
            continue
        if segment.kind == CODE:
            for match in _TOKEN.finditer(source, segment.start, segment.end):
                group = match.lastgroup
                if group == "space":
                    continue
                kind = NAME if group == "name" else PUNCT if group == "punct" else OTHER
                tokens.append(Token(kind, match.group(), match.start()))
        elif segment.kind == STRING:
            tokens.append(Token(STRING, source[segment.start : segment.end], segment.start))
        elif segment.kind == TEMPLATE:
            if source.startswith("`", segment.start):
                tokens.append(Token(STRING, source[segment.start : segment.end], segment.start))
        else:
            tokens.append(Token(OTHER, source[segment.start : segment.end], segment.start))
    return tokens


def pair_index(tokens: List[Token]) -> Dict[int, int]:
    """Map each opening bracket token index to its matching closer."""
    pairs: Dict[int, int] = {}
    stack: List[int] = []
    for index, token in enumerate(tokens):
        if token.kind != PUNCT:
            continue
        if token.text in OPENERS:
            stack.append(index)
        elif token.text in CLOSERS:
            opener = CLOSERS[token.text]
            while stack and tokens[stack[-1]].text != opener:
                stack.pop()
            if stack:
                pairs[stack.pop()] = index
    return pairs


def _skip_string(source: str, pos: int, quote: str) -> int:
    pattern = _STRING_BREAK[quote]
    n = len(source)
    while pos < n:
        match = pattern.search(source, pos)
        if match is None:
            return n
        index = match.start()
        char = source[index]
        if char == "\\":
            pos = index + 2
            continue
        if char == "\n":
            return index
        return index + 1
    return n


def _read_template(source: str, pos: int) -> Tuple[int, bool]:
    """Scan template text; report whether it stopped at a ``${`` opener."""
    n = len(source)
    while pos < n:
        match = _TEMPLATE_BREAK.search(source, pos)
        if match is None:
            return n, False
        index = match.start()
        char = source[index]
        if char == "\\":
            pos = index + 2
            continue
        if char == "$":
            if source.startswith("{", index + 1):
                return index + 2, True
            pos = index + 1
            continue
        return index + 1, False
    return n, False


def _skip_regex(source: str, pos: int) -> Optional[int]:
    n = len(source)
    in_class = False
    while pos < n:
        match = _REGEX_BREAK.search(source, pos)
        if match is None:
            return None
        index = match.start()
        char = source[index]
        if char == "\n" or char == "\r":
            return None
        if char == "\\":
            pos = index + 2
            continue
        if char == "[":
            in_class = True
        elif char == "]":
            in_class = False
        elif not in_class:
            return index + 1
        pos = index + 1
    return None


def _is_ident_char(char: str) -> bool:
    return char.isalnum() or char == "_" or char == "$"


def _regex_allowed_after(source: str, start: int, end: int) -> Optional[bool]:
    while end > start and source[end - 1].isspace():
        end -= 1
    if end == start:
        return None
    last = source[end - 1]
    if _is_ident_char(last):
        word_start = end - 1
        while word_start > start and _is_ident_char(source[word_start - 1]):
            word_start -= 1
        return source[word_start:end] in _REGEX_KEYWORDS
    return last not in ")]"


__all__ = [
    "BLOCK_COMMENT",
    "CODE",
    "LINE_COMMENT",
    "NAME",
    "OTHER",
    "PUNCT",
    "REGEX",
    "STRING",
    "Segment",
    "TEMPLATE",
    "Token",
    "pair_index",
    "scan_segments",
    "tokenize",
]
