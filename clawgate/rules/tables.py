"""Versioned, immutable rule tables consumed by every validation stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..models import HTML, SCRIPT
from .forbidden import ADVISORY_RULES, ALLOWED_APIS, FORBIDDEN_RULES, AdvisoryRule, ForbiddenRule
from .methods import METHOD_TABLE_VERSION, REQUIRED_METHODS, MethodSpec

KIB = 1024
MIB = 1024 * KIB

RULES_VERSION = f"2026.10-m{METHOD_TABLE_VERSION}"

DIMENSIONS: Tuple[str, ...] = ("2d", "3d")

SIZE_LIMITS: Dict[str, int] = {
    "html_2d": 500 * KIB,
    "html_3d": 2 * MIB,
    "script": 50 * KIB,
}

TIER_BUDGETS: Dict[str, int] = {
    "2d_basic": 5 * MIB,
    "2d_rich": 15 * MIB,
    "3d_standard": 25 * MIB,
    "3d_premium": 50 * MIB,
}

DEFAULT_TIERS: Dict[str, str] = {
    "2d": "2d_basic",
    "3d": "3d_standard",
}

ASSET_LIMITS: Dict[str, int] = {
    "image": 2 * MIB,
    "audio": 5 * MIB,
    "model": 10 * MIB,
    "font": 500 * KIB,
    "spritesheet": 3 * MIB,
    "json": 1 * MIB,
}

ASSET_EXTENSIONS: Dict[str, str] = {
    ".png": "image",
    ".jpg": "image",
    ".jpeg": "image",
    ".gif": "image",
    ".webp": "image",
    ".mp3": "audio",
    ".ogg": "audio",
    ".wav": "audio",
    ".m4a": "audio",
    ".aac": "audio",
    ".glb": "model",
    ".gltf": "model",
    ".obj": "model",
    ".woff": "font",
    ".woff2": "font",
    ".ttf": "font",
    ".otf": "font",
    ".json": "json",
}

CDN_HOST = "cdn.jsdelivr.net"

LIBRARIES: Dict[str, str] = {
    "three": "https://cdn.jsdelivr.net/npm/three@0.160.0/build/three.min.js",
    "phaser": "https://cdn.jsdelivr.net/npm/phaser@3.80.1/dist/phaser.min.js",
    "p5": "https://cdn.jsdelivr.net/npm/p5@1.9.0/lib/p5.min.js",
    "pixi": "https://cdn.jsdelivr.net/npm/pixi.js@7.3.2/dist/pixi.min.js",
    "matter": "https://cdn.jsdelivr.net/npm/matter-js@0.19.0/build/matter.min.js",
    "howler": "https://cdn.jsdelivr.net/npm/howler@2.2.4/dist/howler.min.js",
}

REQUIRED_HTML_TAGS: Tuple[str, ...] = ("!doctype", "html", "body", "script")


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RuleTables:
    """Every limit, pattern and list the pipeline consults.

    Instances are passed explicitly into the orchestrator; derive variants with
    :func:`dataclasses.replace` rather than mutating shared state.
    """

    version: str = RULES_VERSION
    size_limits: Mapping[str, int] = field(default_factory=lambda: _frozen(SIZE_LIMITS))
    tier_budgets: Mapping[str, int] = field(default_factory=lambda: _frozen(TIER_BUDGETS))
    default_tiers: Mapping[str, str] = field(default_factory=lambda: _frozen(DEFAULT_TIERS))
    asset_limits: Mapping[str, int] = field(default_factory=lambda: _frozen(ASSET_LIMITS))
    asset_extensions: Mapping[str, str] = field(
        default_factory=lambda: _frozen(ASSET_EXTENSIONS)
    )
    cdn_host: str = CDN_HOST
    libraries: Mapping[str, str] = field(default_factory=lambda: _frozen(LIBRARIES))
    required_html_tags: Tuple[str, ...] = REQUIRED_HTML_TAGS
    canvas_id: str = "clawmachine-canvas"
    game_object_global: str = "window"
    game_object_name: str = "ClawmachineGame"
    required_methods: Tuple[MethodSpec, ...] = REQUIRED_METHODS
    forbidden_rules: Tuple[ForbiddenRule, ...] = FORBIDDEN_RULES
    advisory_rules: Tuple[AdvisoryRule, ...] = ADVISORY_RULES
    allowed_apis: Tuple[str, ...] = ALLOWED_APIS
    bundle_script: str = "game.js"
    bundle_manifest: str = "manifest.json"
    bundle_asset_root: str = "assets/"
    max_entries: int = 1000
    max_compression_ratio: int = 100
    compression_check_floor: int = 1 * MIB

    def size_limit_for(self, kind: str, dimensions: str) -> int:
        if kind == SCRIPT:
            return self.size_limits["script"]
        if kind == HTML:
            return self.size_limits[f"html_{dimensions}"]
        raise KeyError(f"No direct size limit for kind '{kind}'")

    def resolve_tier(self, tier: Optional[str], dimensions: str) -> str:
        return tier or self.default_tiers.get(dimensions, "2d_basic")

    def summary(self) -> Dict[str, Any]:
        """Plain-data view of the tables for the CLI and service."""
        return {
            "version": self.version,
            "size_limits": dict(self.size_limits),
            "tier_budgets": dict(self.tier_budgets),
            "asset_limits": dict(self.asset_limits),
            "asset_extensions": dict(self.asset_extensions),
            "cdn_host": self.cdn_host,
            "libraries": dict(self.libraries),
            "required_methods": [spec.name for spec in self.required_methods],
            "method_patterns": sorted(
                {pattern.name for spec in self.required_methods for pattern in spec.patterns}
            ),
            "forbidden_rules": [
                {"token": rule.token, "category": rule.category} for rule in self.forbidden_rules
            ],
            "allowed_apis": list(self.allowed_apis),
        }


DEFAULT_RULES = RuleTables()

__all__ = [
    "ASSET_EXTENSIONS",
    "ASSET_LIMITS",
    "CDN_HOST",
    "DEFAULT_RULES",
    "DIMENSIONS",
    "KIB",
    "LIBRARIES",
    "MIB",
    "RULES_VERSION",
    "RuleTables",
    "SIZE_LIMITS",
    "TIER_BUDGETS",
]
