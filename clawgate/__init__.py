"""Validation gate for clawmachine game submissions."""

from .models import (
    IssueCode,
    Submission,
    SubmissionMetadata,
    ValidationIssue,
    ValidationResult,
)
from .orchestrator import Orchestrator, validate
from .rules.tables import DEFAULT_RULES, RuleTables
from .scanning import strip_comments
from .validators import ValidationTimeout

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_RULES",
    "IssueCode",
    "Orchestrator",
    "RuleTables",
    "Submission",
    "SubmissionMetadata",
    "ValidationIssue",
    "ValidationResult",
    "ValidationTimeout",
    "strip_comments",
    "validate",
]
