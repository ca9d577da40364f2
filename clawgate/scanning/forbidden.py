"""Substring scanning for denied and discouraged browser APIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..rules.forbidden import AdvisoryRule, ForbiddenRule


@dataclass(frozen=True)
class AdvisoryHit:
    rule: AdvisoryRule
    occurrences: int


def collapse_whitespace(code: str) -> str:
    """Drop all whitespace so ``new  Function (`` reads as ``newFunction(``."""
    return "".join(code.split())


def scan_forbidden(compact: str, rules: Sequence[ForbiddenRule]) -> List[ForbiddenRule]:
    """Return each rule whose token occurs in ``compact``, once per distinct token.

    Matching is a plain substring search, so a denied token inside a longer
    identifier is reported too.
    """
    hits: List[ForbiddenRule] = []
    seen = set()
    for rule in rules:
        needle = rule.needle
        if not needle or needle in seen:
            continue
        if compact.find(needle) != -1:
            hits.append(rule)
            seen.add(needle)
    return hits


def scan_advisories(compact: str, rules: Sequence[AdvisoryRule]) -> List[AdvisoryHit]:
    hits: List[AdvisoryHit] = []
    for rule in rules:
        count = compact.count(rule.needle) if rule.needle else 0
        if count:
            hits.append(AdvisoryHit(rule=rule, occurrences=count))
    return hits


__all__ = ["AdvisoryHit", "collapse_whitespace", "scan_advisories", "scan_forbidden"]
