"""Core validation data structures and helpers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from ..models import ResolvedContext, Submission, ValidationIssue
from ..rules.tables import RuleTables
from ..scanning import collapse_whitespace, pair_index, strip_comments, tokenize

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..bundle import BundleManifest
    from ..scanning import GameObject, HtmlDocument
    from ..scanning.lexer import Token


class FatalValidationError(RuntimeError):
    """Raised by a stage whose failure makes later stages meaningless."""

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        message = "; ".join(issue.message for issue in issues) or "fatal validation failure"
        super().__init__(message)
        self.issues = list(issues)


class ValidationTimeout(RuntimeError):
    """Raised when a run exceeds its wall-clock budget."""

    def __init__(self, stage: str, seconds: float) -> None:
        super().__init__(f"Validation exceeded {seconds:g}s during '{stage}'")
        self.stage = stage
        self.seconds = seconds


class Deadline:
    """Cooperative wall-clock budget checked between stages and bundle entries."""

    def __init__(
        self, seconds: Optional[float], *, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.seconds = seconds
        self._clock = clock
        self._expires = None if seconds is None else clock() + seconds

    def check(self, stage: str) -> None:
        if self._expires is not None and self._clock() > self._expires:
            raise ValidationTimeout(stage, self.seconds or 0.0)


class ScriptUnit:
    """Lazily derived views of one script's source text."""

    def __init__(self, source: str) -> None:
        self.source = source

    @cached_property
    def stripped(self) -> str:
        return strip_comments(self.source)

    @cached_property
    def tokens(self) -> List["Token"]:
        return tokenize(self.stripped)

    @cached_property
    def pairs(self) -> Dict[int, int]:
        return pair_index(self.tokens)

    @cached_property
    def compact(self) -> str:
        return collapse_whitespace(self.stripped)


@dataclass
class ValidationContext:
    """Per-run state shared by the stages of a single submission."""

    submission: Submission
    resolved: ResolvedContext
    rules: RuleTables
    deadline: Deadline
    text: Optional[str] = None
    document: Optional["HtmlDocument"] = None
    scripts: List[ScriptUnit] = field(default_factory=list)
    game_script: Optional[ScriptUnit] = None
    bundle: Optional["BundleManifest"] = None
    game_object: Optional["GameObject"] = None

    @property
    def kind(self) -> str:
        return self.resolved.kind


class Validator(ABC):
    """Contract for one validation stage."""

    name: str = "validator"

    def supports(self, context: ValidationContext) -> bool:
        """Return True when this stage applies to the submission."""
        return True

    @abstractmethod
    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        """Run the stage and return any issues; raise ``FatalValidationError`` to stop."""


__all__ = [
    "Deadline",
    "FatalValidationError",
    "ScriptUnit",
    "ValidationContext",
    "ValidationTimeout",
    "Validator",
]
