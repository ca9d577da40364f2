"""Lexical detection of the game-object contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..rules.methods import IDENT, KEY, PARAMS, MethodPattern, MethodSpec
from .lexer import NAME, OPENERS, PUNCT, STRING, Token

LITERAL = "literal"
DECLARATION = "declaration"
INSTANCE = "instance"
MEMBERS = "members"

OBJECT_BODY = "object"
CLASS_BODY = "class"

_DECLARATION_KEYWORDS = {"const", "let", "var"}
# Right-hand sides that can never be an object with methods.
_VALUE_KEYWORDS = {"null", "undefined", "true", "false", "NaN", "Infinity", "void", "typeof"}
_OBJECT_PRECEDERS = {"=", "(", ",", ":", "[", "?", "|", "&"}
_OBJECT_KEYWORDS = {"return", "yield", "await"}
_CLASS_LOOKBEHIND = 6


@dataclass(frozen=True)
class Body:
    """Token range ``[start, end)`` inside an object literal or class body."""

    start: int
    end: int
    kind: str


@dataclass(frozen=True)
class GameObject:
    """Where the game object is assigned and which bodies hold its methods.

    ``scope`` is ``literal`` for an object literal right-hand side,
    ``declaration`` when it names a variable initialised with one, ``instance``
    for ``new Name(...)`` (directly or through a variable) and ``members`` for
    any other expression, such as a factory call. In ``members`` scope every
    object literal and class body of the script is searched, still only at
    member positions.
    """

    form: str
    token_index: int
    scope: str
    bodies: Tuple[Body, ...]


def find_game_object(
    tokens: Sequence[Token],
    pairs: Mapping[int, int],
    *,
    global_name: str = "window",
    object_name: str = "ClawmachineGame",
) -> Optional[GameObject]:
    """Locate the first ``window.X =`` style assignment whose value can be an object."""
    quoted = {f"'{object_name}'": "bracket_single", f'"{object_name}"': "bracket_double"}
    for index, token in enumerate(tokens):
        if token.kind != NAME or token.text != global_name:
            continue
        if index > 0 and _is_punct(tokens, index - 1, "."):
            continue
        site: Optional[Tuple[str, int]] = None
        if (
            _is_punct(tokens, index + 1, ".")
            and _is_name(tokens, index + 2, object_name)
            and _is_punct(tokens, index + 3, "=")
        ):
            site = ("dot", index + 4)
        elif (
            _is_punct(tokens, index + 1, "[")
            and index + 2 < len(tokens)
            and tokens[index + 2].kind == STRING
            and tokens[index + 2].text in quoted
            and _is_punct(tokens, index + 3, "]")
            and _is_punct(tokens, index + 4, "=")
        ):
            site = (quoted[tokens[index + 2].text], index + 5)
        if site is None:
            continue
        game_object = _resolve_scope(tokens, pairs, site[0], index, site[1])
        if game_object is not None:
            return game_object
    return None


def find_methods(
    tokens: Sequence[Token],
    pairs: Mapping[int, int],
    game_object: GameObject,
    specs: Iterable[MethodSpec],
) -> Dict[str, str]:
    """Return ``{method name: matching pattern name}`` for every detected method."""
    specs = list(specs)
    found: Dict[str, str] = {}
    for body in game_object.bodies:
        if body.kind == CLASS_BODY:
            starts = _class_member_starts(tokens, pairs, body.start, body.end)
        else:
            starts = _member_starts(tokens, pairs, body.start, body.end)
        for first in sorted(starts):
            for spec in specs:
                if spec.name in found:
                    continue
                matched = _match_any(tokens, pairs, spec, first, body.end)
                if matched is not None:
                    found[spec.name] = matched
    return found


def _match_any(
    tokens: Sequence[Token],
    pairs: Mapping[int, int],
    spec: MethodSpec,
    first: int,
    end: int,
) -> Optional[str]:
    for pattern in spec.patterns:
        if _match(tokens, pairs, pattern, spec.name, first, end):
            return pattern.name
    return None


def _match(
    tokens: Sequence[Token],
    pairs: Mapping[int, int],
    pattern: MethodPattern,
    name: str,
    index: int,
    end: int,
) -> bool:
    for atom in pattern.atoms:
        if index >= end:
            return False
        token = tokens[index]
        if atom == KEY:
            if _key_text(token) != name:
                return False
            index += 1
        elif atom == PARAMS:
            if token.kind != PUNCT or token.text != "(" or index not in pairs:
                return False
            index = pairs[index] + 1
        elif atom == IDENT:
            if token.kind != NAME:
                return False
            index += 1
        else:
            if token.text != atom or token.kind == STRING:
                return False
            index += 1
    return True


def _member_starts(
    tokens: Sequence[Token], pairs: Mapping[int, int], start: int, end: int
) -> Set[int]:
    starts = {start}
    index = start
    while index < end:
        token = tokens[index]
        if token.kind == PUNCT and token.text in OPENERS and index in pairs:
            index = pairs[index] + 1
            continue
        if token.kind == PUNCT and token.text == ",":
            starts.add(index + 1)
        index += 1
    return starts


def _class_member_starts(
    tokens: Sequence[Token], pairs: Mapping[int, int], start: int, end: int
) -> Set[int]:
    # Class members need no separator, so every position outside nested brackets counts.
    starts: Set[int] = set()
    index = start
    while index < end:
        starts.add(index)
        token = tokens[index]
        if token.kind == PUNCT and token.text in OPENERS and index in pairs:
            index = pairs[index] + 1
            continue
        index += 1
    return starts


def _resolve_scope(
    tokens: Sequence[Token],
    pairs: Mapping[int, int],
    form: str,
    index: int,
    value_index: int,
) -> Optional[GameObject]:
    total = len(tokens)
    if value_index >= total:
        return None
    value = tokens[value_index]

    if _is_punct(tokens, value_index, "{"):
        body = Body(value_index + 1, pairs.get(value_index, total), OBJECT_BODY)
        return GameObject(form, index, LITERAL, (body,))

    if value.kind == NAME:
        if value.text in _VALUE_KEYWORDS:
            return None
        if value.text == "new":
            bodies = _class_bodies(tokens, pairs, value_index + 1)
            if bodies:
                return GameObject(form, index, INSTANCE, bodies)
        elif _ends_expression(tokens, value_index + 1):
            binding = _find_binding(tokens, pairs, value.text)
            if binding is not None:
                return GameObject(form, index, binding[0], binding[1])
        return GameObject(form, index, MEMBERS, _all_bodies(tokens, pairs))

    if _is_punct(tokens, value_index, "("):
        return GameObject(form, index, MEMBERS, _all_bodies(tokens, pairs))

    # Strings, numbers, regexes, arrays and unary expressions.
    return None


def _ends_expression(tokens: Sequence[Token], index: int) -> bool:
    if index >= len(tokens):
        return True
    token = tokens[index]
    return token.kind == NAME or (token.kind == PUNCT and token.text in {";", ",", ")", "}"})


def _find_binding(
    tokens: Sequence[Token], pairs: Mapping[int, int], variable: str
) -> Optional[Tuple[str, Tuple[Body, ...]]]:
    total = len(tokens)
    for index, token in enumerate(tokens):
        if token.kind != NAME or token.text != variable or not _is_punct(tokens, index + 1, "="):
            continue
        previous = tokens[index - 1] if index > 0 else None
        if previous is not None and previous.kind == PUNCT and previous.text == ".":
            continue
        if not (
            previous is None or previous.text in _DECLARATION_KEYWORDS or previous.kind == PUNCT
        ):
            continue
        if _is_punct(tokens, index + 2, "{"):
            body = Body(index + 3, pairs.get(index + 2, total), OBJECT_BODY)
            return DECLARATION, (body,)
        if _is_name(tokens, index + 2, "new"):
            bodies = _class_bodies(tokens, pairs, index + 3)
            if bodies:
                return INSTANCE, bodies
    return None


def _class_bodies(
    tokens: Sequence[Token], pairs: Mapping[int, int], name_index: int
) -> Tuple[Body, ...]:
    """Bodies of ``class Name {`` or ``Name = class {`` for the class at ``name_index``."""
    if name_index >= len(tokens) or tokens[name_index].kind != NAME:
        return ()
    class_name = tokens[name_index].text
    for index, token in enumerate(tokens):
        if token.kind != NAME:
            continue
        if token.text == "class" and _is_name(tokens, index + 1, class_name):
            header = index + 2
        elif (
            token.text == class_name
            and _is_punct(tokens, index + 1, "=")
            and _is_name(tokens, index + 2, "class")
        ):
            header = index + 3
        else:
            continue
        opener = _next_brace(tokens, header)
        if opener is not None:
            return (Body(opener + 1, pairs.get(opener, len(tokens)), CLASS_BODY),)
    return ()


def _next_brace(tokens: Sequence[Token], index: int) -> Optional[int]:
    # Skips an ``extends`` clause; a statement end means there is no body.
    while index < len(tokens):
        token = tokens[index]
        if token.kind == PUNCT and token.text == "{":
            return index
        if token.kind == PUNCT and token.text in {";", "}"}:
            return None
        index += 1
    return None


def _all_bodies(tokens: Sequence[Token], pairs: Mapping[int, int]) -> Tuple[Body, ...]:
    bodies: List[Body] = []
    for opener, closer in sorted(pairs.items()):
        if tokens[opener].text != "{":
            continue
        kind = _body_kind(tokens, opener)
        if kind is not None:
            bodies.append(Body(opener + 1, closer, kind))
    return tuple(bodies)


def _body_kind(tokens: Sequence[Token], opener: int) -> Optional[str]:
    if opener == 0:
        return None
    previous = tokens[opener - 1]
    if previous.kind == PUNCT and previous.text in _OBJECT_PRECEDERS:
        return OBJECT_BODY
    if previous.kind == NAME and previous.text in _OBJECT_KEYWORDS:
        return OBJECT_BODY
    index = opener - 1
    floor = max(0, opener - _CLASS_LOOKBEHIND)
    while index >= floor:
        token = tokens[index]
        if token.kind == NAME and token.text == "class":
            return CLASS_BODY
        if token.kind != NAME and not (token.kind == PUNCT and token.text == "."):
            return None
        index -= 1
    return None


def _key_text(token: Token) -> Optional[str]:
    if token.kind == NAME:
        return token.text
    if token.kind == STRING and len(token.text) >= 2 and token.text[0] in "'\"":
        if token.text[-1] == token.text[0]:
            return token.text[1:-1]
    return None


def _is_punct(tokens: Sequence[Token], index: int, text: str) -> bool:
    return 0 <= index < len(tokens) and tokens[index].kind == PUNCT and tokens[index].text == text


def _is_name(tokens: Sequence[Token], index: int, text: str) -> bool:
    return 0 <= index < len(tokens) and tokens[index].kind == NAME and tokens[index].text == text


__all__ = [
    "Body",
    "CLASS_BODY",
    "DECLARATION",
    "GameObject",
    "INSTANCE",
    "LITERAL",
    "MEMBERS",
    "OBJECT_BODY",
    "find_game_object",
    "find_methods",
]
