"""Asset bundle checks: archive layout, per-category ceilings and ``game.js``."""

from __future__ import annotations

import json
from typing import Dict, List

from ..bundle import (
    SPRITESHEET,
    STRAY_ROLE,
    UNSAFE_ROLE,
    BundleError,
    BundleManifest,
    BundleReader,
    spritesheet_key,
)
from ..formats import FormatError, decode_text
from ..logging import get_logger
from ..models import ASSET_BUNDLE, AssetEntry, IssueCode, ValidationIssue
from .base import FatalValidationError, ScriptUnit, ValidationContext, Validator
from .size import size_issue

_logger = get_logger("validators.bundle")


class AssetBundleValidator(Validator):
    """Opens the archive, checks its entries and hands ``game.js`` to the script stages."""

    name = "asset_bundle"

    def supports(self, context: ValidationContext) -> bool:
        return context.kind == ASSET_BUNDLE

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        rules = context.rules
        budget = context.resolved.size_limit
        reader = BundleReader(rules, checkpoint=context.deadline.check)
        try:
            manifest = reader.read(context.submission.payload, budget)
        except BundleError as exc:
            raise FatalValidationError([exc.to_issue()]) from exc
        context.bundle = manifest

        issues = self._layout_issues(manifest, context)
        issues.extend(self._asset_issues(manifest.assets, context))
        if manifest.total_size > budget:
            issues.append(
                ValidationIssue.error(
                    IssueCode.INVALID_ASSET_BUNDLE,
                    f"Bundle contents total at least {manifest.total_size} bytes; "
                    f"tier {context.resolved.tier} allows {budget} bytes",
                    actual=manifest.total_size,
                    allowed=budget,
                    tier=context.resolved.tier,
                )
            )
        issues.extend(self._manifest_warnings(manifest, context))

        if not manifest.has_path(rules.bundle_script):
            issues.append(
                ValidationIssue.error(
                    IssueCode.INVALID_ASSET_BUNDLE,
                    f"Bundle has no root {rules.bundle_script}",
                    entry=rules.bundle_script,
                )
            )
            raise FatalValidationError(issues)

        script_limit = rules.size_limits["script"]
        if manifest.script is None or manifest.script_size > script_limit:
            issues.append(
                size_issue(
                    rules.bundle_script,
                    manifest.script_size,
                    script_limit,
                    entry=rules.bundle_script,
                )
            )
            raise FatalValidationError(issues)

        try:
            text = decode_text(manifest.script, label=rules.bundle_script)
        except FormatError as exc:
            issues.append(exc.issue)
            raise FatalValidationError(issues) from exc
        context.text = text
        context.scripts = [ScriptUnit(text)]
        return issues

    def _layout_issues(
        self, manifest: BundleManifest, context: ValidationContext
    ) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for path in sorted(set(manifest.duplicates)):
            issues.append(_bundle_issue(f"Entry '{path}' appears more than once", path))
        root = context.rules.bundle_asset_root
        for path, role in manifest.roles.items():
            if role == UNSAFE_ROLE:
                issues.append(_bundle_issue(f"Entry '{path}' has an unsafe path", path))
            elif role == STRAY_ROLE:
                issues.append(_bundle_issue(f"Entry '{path}' must live under {root}", path))
        return issues

    def _asset_issues(
        self, assets: List[AssetEntry], context: ValidationContext
    ) -> List[ValidationIssue]:
        limits = context.resolved.asset_limits or context.rules.asset_limits
        issues: List[ValidationIssue] = []
        sheets: Dict[str, List[AssetEntry]] = {}
        for asset in assets:
            if asset.category is None:
                issues.append(
                    _bundle_issue(
                        f"Entry '{asset.path}' has unsupported extension '{asset.extension or '(none)'}'",
                        asset.path,
                    )
                )
            elif asset.category == SPRITESHEET:
                sheets.setdefault(spritesheet_key(asset.path), []).append(asset)
            elif asset.byte_size > limits[asset.category]:
                issues.append(
                    _bundle_issue(
                        f"{asset.category.capitalize()} '{asset.path}' is {asset.byte_size} bytes; "
                        f"the limit is {limits[asset.category]} bytes",
                        asset.path,
                        category=asset.category,
                        actual=asset.byte_size,
                        allowed=limits[asset.category],
                    )
                )

        for stem, members in sorted(sheets.items()):
            combined = sum(member.byte_size for member in members)
            if combined > limits[SPRITESHEET]:
                issues.append(
                    _bundle_issue(
                        f"Sprite sheet '{stem}' is {combined} bytes; "
                        f"the limit is {limits[SPRITESHEET]} bytes",
                        stem,
                        category=SPRITESHEET,
                        members=[member.path for member in members],
                        actual=combined,
                        allowed=limits[SPRITESHEET],
                    )
                )
        return issues

    def _manifest_warnings(
        self, manifest: BundleManifest, context: ValidationContext
    ) -> List[ValidationIssue]:
        name = context.rules.bundle_manifest
        if not manifest.has_path(name):
            return []
        if manifest.manifest is None:
            return [_manifest_warning(f"{name} is larger than {context.rules.asset_limits['json']} bytes")]
        try:
            data = json.loads(manifest.manifest.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
            _logger.debug("Ignoring unparsable %s: %s", name, exc)
            return [_manifest_warning(f"{name} is not valid JSON")]
        if not isinstance(data, dict):
            return [_manifest_warning(f"{name} must contain a JSON object")]

        preload = data.get("preload", [])
        if not isinstance(preload, list) or not all(isinstance(item, str) for item in preload):
            return [_manifest_warning(f"{name} 'preload' must be a list of paths")]
        absent = [item for item in preload if not manifest.has_path(item)]
        if absent:
            return [
                _manifest_warning(
                    f"{name} preloads files missing from the bundle: {', '.join(absent)}",
                    missing=absent,
                )
            ]
        return []


def _bundle_issue(message: str, entry: str, **detail: object) -> ValidationIssue:
    return ValidationIssue.error(IssueCode.INVALID_ASSET_BUNDLE, message, entry=entry, **detail)


def _manifest_warning(message: str, **detail: object) -> ValidationIssue:
    return ValidationIssue.warning(IssueCode.MANIFEST_IGNORED, f"{message}; it was ignored", **detail)


__all__ = ["AssetBundleValidator"]
