"""Checks that only apply to single-file HTML submissions."""

from __future__ import annotations

from typing import List
from urllib.parse import urlsplit

from ..models import HTML, IssueCode, ValidationIssue
from ..scanning import missing_tags
from .base import ValidationContext, Validator


class _HtmlValidator(Validator):
    def supports(self, context: ValidationContext) -> bool:
        return context.kind == HTML and context.document is not None


class StructureValidator(_HtmlValidator):
    """Requires the doctype, html, body and script tags."""

    name = "structure"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        text = context.text or ""
        return [
            ValidationIssue.error(
                IssueCode.INVALID_HTML, f"Missing required <{tag}> tag", tag=tag
            )
            for tag in missing_tags(text, context.rules.required_html_tags)
        ]


class CanvasValidator(_HtmlValidator):
    """2D games draw into a canvas with the platform's element id."""

    name = "canvas"

    def supports(self, context: ValidationContext) -> bool:
        return super().supports(context) and context.resolved.dimensions == "2d"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        canvas_id = context.rules.canvas_id
        if context.document is None or canvas_id in context.document.canvas_ids:
            return []
        return [
            ValidationIssue.error(
                IssueCode.MISSING_CANVAS,
                f'2D games need a <canvas id="{canvas_id}"> element',
                canvas_id=canvas_id,
            )
        ]


class ExternalScriptValidator(_HtmlValidator):
    """Every ``<script src>`` must be served from the allowed CDN host."""

    name = "external_scripts"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        allowed = context.rules.cdn_host
        sources = context.document.script_sources if context.document else []
        issues: List[ValidationIssue] = []
        for src in sources:
            host = script_host(src)
            if host == allowed:
                continue
            issues.append(
                ValidationIssue.error(
                    IssueCode.INVALID_EXTERNAL_SCRIPT,
                    f"Script '{src}' is not served from {allowed}",
                    src=src,
                    host=host,
                )
            )
        return issues


class ViewportValidator(_HtmlValidator):
    name = "viewport"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        if context.document is None or context.document.has_viewport:
            return []
        return [
            ValidationIssue.warning(
                IssueCode.MISSING_VIEWPORT,
                'No <meta name="viewport"> tag; the game may not scale on mobile',
            )
        ]


def script_host(src: str) -> str:
    """Return the lower-cased host of ``src`` or an empty string when it has none."""
    try:
        parts = urlsplit(src.strip())
        host = parts.hostname or ""
    except ValueError:
        return ""
    if parts.scheme and parts.scheme.lower() not in ("http", "https"):
        return ""
    return host.lower()


__all__ = [
    "CanvasValidator",
    "ExternalScriptValidator",
    "StructureValidator",
    "ViewportValidator",
    "script_host",
]
