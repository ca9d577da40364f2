"""Byte-size ceilings and text decoding, applied before any parsing."""

from __future__ import annotations

from typing import List

from ..formats import FormatError, decode_text
from ..models import ASSET_BUNDLE, HTML, IssueCode, ValidationIssue
from ..scanning import HtmlParseError, parse_html
from .base import FatalValidationError, ScriptUnit, ValidationContext, Validator


def size_issue(label: str, actual: int, allowed: int, **detail: object) -> ValidationIssue:
    return ValidationIssue.error(
        IssueCode.FILE_TOO_LARGE,
        f"{label} is {actual} bytes; the limit is {allowed} bytes",
        actual=actual,
        allowed=allowed,
        **detail,
    )


class SizeValidator(Validator):
    """Compares the raw payload length with the resolved ceiling."""

    name = "size"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        actual = len(context.submission.payload)
        allowed = context.resolved.size_limit
        if actual <= allowed:
            return []
        if context.kind == ASSET_BUNDLE:
            label = f"Asset bundle ({context.resolved.tier})"
        else:
            label = f"{context.kind.upper()} submission ({context.resolved.dimensions})"
        raise FatalValidationError([size_issue(label, actual, allowed)])


class DecodeValidator(Validator):
    """Decodes html/script payloads and prepares the script views."""

    name = "decode"

    def supports(self, context: ValidationContext) -> bool:
        return context.kind != ASSET_BUNDLE

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        try:
            text = decode_text(context.submission.payload)
        except FormatError as exc:
            raise FatalValidationError([exc.issue]) from exc
        context.text = text

        if context.kind == HTML:
            try:
                document = parse_html(text)
            except HtmlParseError as exc:
                raise FatalValidationError(
                    [ValidationIssue.error(IssueCode.INVALID_HTML, str(exc))]
                ) from exc
            context.document = document
            context.scripts = [ScriptUnit(code) for code in document.code_units]
        else:
            context.scripts = [ScriptUnit(text)]
        return []


__all__ = ["DecodeValidator", "SizeValidator", "size_issue"]
