"""Submission kind resolution and payload decoding."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from .models import (
    ASSET_BUNDLE,
    HTML,
    SCRIPT,
    IssueCode,
    ResolvedContext,
    Submission,
    ValidationIssue,
)
from .rules.tables import DIMENSIONS, RuleTables

_ZIP_SIGNATURES: Tuple[bytes, ...] = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")
_OTHER_ARCHIVES: Tuple[Tuple[bytes, str], ...] = (
    (b"\x1f\x8b", "gzip"),
    (b"BZh", "bzip2"),
    (b"\xfd7zXZ\x00", "xz"),
    (b"7z\xbc\xaf\x27\x1c", "7z"),
    (b"Rar!\x1a\x07", "rar"),
)
_TAR_MAGIC_OFFSET = 257
_DECLARABLE_FORMATS = (HTML, SCRIPT)


class FormatError(RuntimeError):
    """Raised when a payload cannot be resolved or decoded as any known kind."""

    def __init__(self, code: IssueCode, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.issue = ValidationIssue.error(code, message, **detail)


def sniff_archive(payload: bytes) -> Optional[str]:
    """Return the archive container name found in ``payload``'s signature."""
    if payload.startswith(_ZIP_SIGNATURES):
        return "zip"
    for signature, name in _OTHER_ARCHIVES:
        if payload.startswith(signature):
            return name
    if payload[_TAR_MAGIC_OFFSET : _TAR_MAGIC_OFFSET + 5] == b"ustar":
        return "tar"
    return None


def resolve_context(submission: Submission, rules: RuleTables) -> ResolvedContext:
    """Determine the effective kind and ceilings for ``submission``."""
    payload = submission.payload
    metadata = submission.metadata
    if not payload:
        raise FormatError(IssueCode.INVALID_GAME_FILE, "Submission is empty")
    if metadata.malformed:
        name = metadata.malformed[0]
        raise FormatError(
            IssueCode.INVALID_GAME_FILE,
            f"Metadata field '{name}' must be a name or a list of names",
            field=name,
        )

    dimensions = metadata.dimensions
    if dimensions not in DIMENSIONS:
        raise FormatError(
            IssueCode.INVALID_GAME_FILE,
            f"Unsupported dimensions '{dimensions}'; expected one of {', '.join(DIMENSIONS)}",
            dimensions=dimensions,
        )

    archive = sniff_archive(payload)
    if archive == "zip":
        tier = rules.resolve_tier(metadata.tier, dimensions)
        if tier not in rules.tier_budgets:
            raise FormatError(
                IssueCode.INVALID_ASSET_BUNDLE,
                f"Unknown asset bundle tier '{tier}'",
                tier=tier,
                tiers=sorted(rules.tier_budgets),
            )
        return ResolvedContext(
            kind=ASSET_BUNDLE,
            dimensions=dimensions,
            size_limit=rules.tier_budgets[tier],
            tier=tier,
            asset_limits=rules.asset_limits,
        )
    if archive is not None:
        raise FormatError(
            IssueCode.INVALID_GAME_FILE,
            f"Unsupported archive container '{archive}'; bundles must be zip files",
            container=archive,
        )

    declared = metadata.format or HTML
    if declared not in _DECLARABLE_FORMATS:
        raise FormatError(
            IssueCode.INVALID_GAME_FILE,
            f"Unsupported format '{declared}'; expected html or script",
            format=declared,
        )
    return ResolvedContext(
        kind=declared,
        dimensions=dimensions,
        size_limit=rules.size_limit_for(declared, dimensions),
    )


def decode_text(payload: bytes, *, label: str = "Submission") -> str:
    """Decode a text payload as UTF-8 (BOM allowed), rejecting binary data."""
    if b"\x00" in payload:
        raise FormatError(
            IssueCode.INVALID_GAME_FILE,
            f"{label} contains binary data",
            offset=payload.index(b"\x00"),
        )
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FormatError(
            IssueCode.INVALID_GAME_FILE,
            f"{label} is not valid UTF-8 text",
            offset=exc.start,
        ) from exc


__all__ = ["FormatError", "decode_text", "resolve_context", "sniff_archive"]
