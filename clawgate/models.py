"""Core data models shared across clawgate components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class IssueCode(str, Enum):
    """Closed set of issue codes a validation run may report."""

    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    MISSING_CANVAS = "MISSING_CANVAS"
    MISSING_GAME_OBJECT = "MISSING_GAME_OBJECT"
    MISSING_METHOD = "MISSING_METHOD"
    FORBIDDEN_API = "FORBIDDEN_API"
    INVALID_HTML = "INVALID_HTML"
    INVALID_EXTERNAL_SCRIPT = "INVALID_EXTERNAL_SCRIPT"
    INVALID_ASSET_BUNDLE = "INVALID_ASSET_BUNDLE"
    INVALID_GAME_FILE = "INVALID_GAME_FILE"
    # advisory
    CONSOLE_USAGE = "CONSOLE_USAGE"
    DIALOG_USAGE = "DIALOG_USAGE"
    MISSING_VIEWPORT = "MISSING_VIEWPORT"
    MANIFEST_IGNORED = "MANIFEST_IGNORED"


ERROR = "error"
WARNING = "warning"

HTML = "html"
SCRIPT = "script"
ASSET_BUNDLE = "asset_bundle"


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding produced by a validation stage."""

    code: IssueCode
    severity: str
    message: str
    detail: Optional[Mapping[str, Any]] = None

    @classmethod
    def error(
        cls, code: IssueCode, message: str, **detail: Any
    ) -> "ValidationIssue":
        return cls(code=code, severity=ERROR, message=message, detail=detail or None)

    @classmethod
    def warning(
        cls, code: IssueCode, message: str, **detail: Any
    ) -> "ValidationIssue":
        return cls(code=code, severity=WARNING, message=message, detail=detail or None)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code.value,
            "severity": self.severity,
            "message": self.message,
        }
        if self.detail:
            payload["detail"] = dict(self.detail)
        return payload


@dataclass
class ValidationResult:
    """Verdict for one submission.

    ``ok`` mirrors the error list. ``incomplete`` holds the reason a run was
    abandoned before reaching a verdict; such a result is never ok.
    """

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    incomplete: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors and self.incomplete is None

    @property
    def error_code(self) -> Optional[str]:
        """Code of the first error, used by callers that report a single code."""
        return self.errors[0].code.value if self.errors else None

    def add(self, issue: ValidationIssue) -> None:
        if issue.severity == ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def extend(self, issues: List[ValidationIssue]) -> None:
        for issue in issues:
            self.add(issue)

    def codes(self) -> List[str]:
        return [issue.code.value for issue in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "ok": self.ok,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
        if self.incomplete is not None:
            payload["incomplete"] = self.incomplete
        return payload


@dataclass(frozen=True)
class SubmissionMetadata:
    """Metadata declared by the submitter alongside the payload."""

    format: Optional[str] = None
    dimensions: str = "2d"
    tier: Optional[str] = None
    libs: Tuple[str, ...] = ()
    malformed: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SubmissionMetadata":
        """Normalise submitter metadata; unreadable fields are listed in ``malformed``."""
        if not data:
            return cls()
        malformed: List[str] = []
        libs = _as_names(data.get("libs"))
        if libs is None:
            malformed.append("libs")
            libs = ()
        dimensions = data.get("dimensions")
        return cls(
            format=_as_optional_str(data.get("format")),
            dimensions=str(dimensions).strip().lower() if dimensions else "2d",
            tier=_as_optional_str(data.get("tier")),
            libs=libs,
            malformed=tuple(malformed),
        )


@dataclass(frozen=True)
class Submission:
    """Raw payload plus declared metadata. Never mutated once received."""

    payload: bytes
    metadata: SubmissionMetadata = field(default_factory=SubmissionMetadata)


@dataclass(frozen=True)
class ResolvedContext:
    """Effective kind and ceilings derived once per submission."""

    kind: str
    dimensions: str
    size_limit: int
    tier: Optional[str] = None
    asset_limits: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AssetEntry:
    """One decompressed entry of an asset bundle."""

    path: str
    extension: str
    category: Optional[str]
    byte_size: int


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def _as_names(value: Any) -> Optional[Tuple[str, ...]]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    return None


__all__ = [
    "ASSET_BUNDLE",
    "AssetEntry",
    "ERROR",
    "HTML",
    "IssueCode",
    "ResolvedContext",
    "SCRIPT",
    "Submission",
    "SubmissionMetadata",
    "ValidationIssue",
    "ValidationResult",
    "WARNING",
]
