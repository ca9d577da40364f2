"""Rule tables: size policy, method contract and API deny-list."""

from .forbidden import ADVISORY_RULES, ALLOWED_APIS, FORBIDDEN_RULES, AdvisoryRule, ForbiddenRule
from .methods import METHOD_PATTERNS, REQUIRED_METHODS, MethodPattern, MethodSpec
from .tables import DEFAULT_RULES, DIMENSIONS, KIB, MIB, RuleTables

__all__ = [
    "ADVISORY_RULES",
    "ALLOWED_APIS",
    "AdvisoryRule",
    "DEFAULT_RULES",
    "DIMENSIONS",
    "FORBIDDEN_RULES",
    "ForbiddenRule",
    "KIB",
    "METHOD_PATTERNS",
    "MIB",
    "MethodPattern",
    "MethodSpec",
    "REQUIRED_METHODS",
    "RuleTables",
]
