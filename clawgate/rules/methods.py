"""Required game-object methods and the syntactic forms that define them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

KEY = "<key>"
PARAMS = "(...)"
IDENT = "<ident>"

METHOD_TABLE_VERSION = 1


@dataclass(frozen=True)
class MethodPattern:
    """A definition syntax expressed as a sequence of token atoms.

    ``<key>`` matches the method name as an identifier or quoted string,
    ``(...)`` matches a balanced parenthesised group, ``<ident>`` matches any
    single identifier and every other atom must equal the token text.
    """

    name: str
    atoms: Tuple[str, ...]

    @classmethod
    def parse(cls, name: str, form: str) -> "MethodPattern":
        return cls(name=name, atoms=tuple(form.split()))


@dataclass(frozen=True)
class MethodSpec:
    """A required method and the patterns that count as defining it."""

    name: str
    patterns: Tuple[MethodPattern, ...]


METHOD_PATTERNS: Tuple[MethodPattern, ...] = (
    MethodPattern.parse("function_property", "<key> : function"),
    MethodPattern.parse("async_function_property", "<key> : async function"),
    MethodPattern.parse("shorthand", "<key> (...) {"),
    MethodPattern.parse("async_shorthand", "async <key> (...) {"),
    MethodPattern.parse("arrow", "<key> : (...) =>"),
    MethodPattern.parse("async_arrow", "<key> : async (...) =>"),
    MethodPattern.parse("arrow_bare_param", "<key> : <ident> =>"),
    MethodPattern.parse("async_arrow_bare_param", "<key> : async <ident> =>"),
)

REQUIRED_METHOD_NAMES: Tuple[str, ...] = (
    "init",
    "start",
    "reset",
    "getState",
    "sendInput",
    "getMeta",
)

REQUIRED_METHODS: Tuple[MethodSpec, ...] = tuple(
    MethodSpec(name=name, patterns=METHOD_PATTERNS) for name in REQUIRED_METHOD_NAMES
)

__all__ = [
    "IDENT",
    "KEY",
    "METHOD_PATTERNS",
    "METHOD_TABLE_VERSION",
    "MethodPattern",
    "MethodSpec",
    "PARAMS",
    "REQUIRED_METHODS",
    "REQUIRED_METHOD_NAMES",
]
