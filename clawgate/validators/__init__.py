"""Validation stages and the default stage order."""

from typing import List

from .base import (
    Deadline,
    FatalValidationError,
    ScriptUnit,
    ValidationContext,
    ValidationTimeout,
    Validator,
)
from .bundle import AssetBundleValidator
from .html import CanvasValidator, ExternalScriptValidator, StructureValidator, ViewportValidator
from .script import (
    AdvisoryValidator,
    ForbiddenApiValidator,
    GameObjectValidator,
    LibraryValidator,
    MethodValidator,
)
from .size import DecodeValidator, SizeValidator


def default_stages() -> List[Validator]:
    """Return the gating stages in execution order."""
    return [
        SizeValidator(),
        DecodeValidator(),
        AssetBundleValidator(),
        StructureValidator(),
        CanvasValidator(),
        ExternalScriptValidator(),
        LibraryValidator(),
        GameObjectValidator(),
        MethodValidator(),
        ForbiddenApiValidator(),
    ]


def default_advisories() -> List[Validator]:
    """Return the warning-only stages run whenever the text was decoded."""
    return [ViewportValidator(), AdvisoryValidator()]


__all__ = [
    "AdvisoryValidator",
    "AssetBundleValidator",
    "CanvasValidator",
    "Deadline",
    "DecodeValidator",
    "ExternalScriptValidator",
    "FatalValidationError",
    "ForbiddenApiValidator",
    "GameObjectValidator",
    "LibraryValidator",
    "MethodValidator",
    "ScriptUnit",
    "SizeValidator",
    "StructureValidator",
    "ValidationContext",
    "ValidationTimeout",
    "Validator",
    "ViewportValidator",
    "default_advisories",
    "default_stages",
]
