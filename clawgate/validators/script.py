"""Game-object contract, library registry and browser API checks."""

from __future__ import annotations

from typing import Dict, List, Set

from ..models import IssueCode, ValidationIssue
from ..rules.forbidden import AdvisoryRule
from ..scanning import find_game_object, find_methods, scan_advisories, scan_forbidden
from .base import FatalValidationError, ValidationContext, Validator
from .html import script_host


class _ScriptValidator(Validator):
    def supports(self, context: ValidationContext) -> bool:
        return context.text is not None


class LibraryValidator(Validator):
    """Declared library keys must exist in the registry and point at the CDN."""

    name = "libraries"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        rules = context.rules
        issues: List[ValidationIssue] = []
        for key in context.submission.metadata.libs:
            url = rules.libraries.get(key)
            if url is None:
                issues.append(
                    ValidationIssue.error(
                        IssueCode.INVALID_EXTERNAL_SCRIPT,
                        f"Unknown library '{key}'; available: {', '.join(sorted(rules.libraries))}",
                        lib=key,
                    )
                )
            elif script_host(url) != rules.cdn_host:
                issues.append(
                    ValidationIssue.error(
                        IssueCode.INVALID_EXTERNAL_SCRIPT,
                        f"Library '{key}' is not served from {rules.cdn_host}",
                        lib=key,
                        src=url,
                    )
                )
        return issues


class GameObjectValidator(_ScriptValidator):
    """Finds the object assignment in whichever code unit defines it."""

    name = "game_object"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        rules = context.rules
        for unit in context.scripts:
            game_object = find_game_object(
                unit.tokens,
                unit.pairs,
                global_name=rules.game_object_global,
                object_name=rules.game_object_name,
            )
            if game_object is not None:
                context.game_script = unit
                context.game_object = game_object
                return []

        target = f"{rules.game_object_global}.{rules.game_object_name}"
        raise FatalValidationError(
            [
                ValidationIssue.error(
                    IssueCode.MISSING_GAME_OBJECT,
                    f"No object is assigned to {target}",
                    target=target,
                )
            ]
        )


class MethodValidator(_ScriptValidator):
    """Reports each required method the game object does not define."""

    name = "methods"

    def supports(self, context: ValidationContext) -> bool:
        return context.game_script is not None and context.game_object is not None

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        unit, game_object = context.game_script, context.game_object
        if unit is None or game_object is None:
            return []
        found = find_methods(unit.tokens, unit.pairs, game_object, context.rules.required_methods)
        return [
            ValidationIssue.error(
                IssueCode.MISSING_METHOD,
                f"{context.rules.game_object_name} is missing required method '{spec.name}'",
                method=spec.name,
            )
            for spec in context.rules.required_methods
            if spec.name not in found
        ]


class ForbiddenApiValidator(_ScriptValidator):
    """Scans every code unit; a token is reported once however often it appears."""

    name = "forbidden_apis"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        rules = context.rules.forbidden_rules
        needles: Set[str] = set()
        for unit in context.scripts:
            needles.update(rule.needle for rule in scan_forbidden(unit.compact, rules))

        issues: List[ValidationIssue] = []
        for rule in rules:
            if rule.needle not in needles:
                continue
            needles.discard(rule.needle)
            issues.append(
                ValidationIssue.error(
                    IssueCode.FORBIDDEN_API,
                    f"Use of '{rule.token}' is not allowed ({rule.category})",
                    token=rule.token,
                    category=rule.category,
                )
            )
        return issues


class AdvisoryValidator(_ScriptValidator):
    """Console and dialog usage is allowed but discouraged."""

    name = "advisories"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        counts: Dict[AdvisoryRule, int] = {}
        for unit in context.scripts:
            for hit in scan_advisories(unit.compact, context.rules.advisory_rules):
                counts[hit.rule] = counts.get(hit.rule, 0) + hit.occurrences
        return [
            ValidationIssue.warning(
                rule.code,
                f"'{rule.token}' is used {counts[rule]} time(s); "
                f"{rule.label} output is not shown to players",
                token=rule.token,
                occurrences=counts[rule],
            )
            for rule in context.rules.advisory_rules
            if rule in counts
        ]


__all__ = [
    "AdvisoryValidator",
    "ForbiddenApiValidator",
    "GameObjectValidator",
    "LibraryValidator",
    "MethodValidator",
]
