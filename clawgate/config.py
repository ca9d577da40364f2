"""Configuration loading for clawgate (.clawgate.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

from .rules.tables import DEFAULT_RULES, RuleTables

CONFIG_FILENAME = ".clawgate.yml"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_WORKERS = 4


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ClawGateConfig:
    """Represents the settings defined in .clawgate.yml."""

    root: Path
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS
    rules: RuleTables = field(default_factory=lambda: DEFAULT_RULES)


def load_config(config_path: Path) -> ClawGateConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    if not config_file.exists():
        return ClawGateConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    timeout = _as_float(data.get("timeout_seconds"))
    if timeout is not None and timeout <= 0:
        raise ConfigError("timeout_seconds must be positive")
    workers = _as_int(data.get("max_workers"))
    if workers is not None and workers < 1:
        raise ConfigError("max_workers must be at least 1")

    return ClawGateConfig(
        root=root,
        timeout_seconds=timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS,
        max_workers=workers if workers is not None else DEFAULT_MAX_WORKERS,
        rules=build_rules(_as_dict(data.get("rules"))),
    )


def build_rules(overrides: Mapping[str, Any], base: RuleTables = DEFAULT_RULES) -> RuleTables:
    """Merge a ``rules:`` mapping onto ``base`` without mutating it."""
    if not overrides:
        return base
    changes: Dict[str, Any] = {}

    version = _as_str(overrides.get("version"))
    if version:
        changes["version"] = version
    cdn_host = _as_str(overrides.get("cdn_host"))
    if cdn_host:
        changes["cdn_host"] = cdn_host.strip().lower()

    size_limits = _as_dict(overrides.get("size_limits"))
    if size_limits:
        changes["size_limits"] = _merge_sizes("size_limits", base.size_limits, size_limits, strict=True)
    tiers = _as_dict(overrides.get("tiers"))
    if tiers:
        changes["tier_budgets"] = _merge_sizes("tiers", base.tier_budgets, tiers, strict=False)
    asset_limits = _as_dict(overrides.get("asset_limits"))
    if asset_limits:
        changes["asset_limits"] = _merge_sizes("asset_limits", base.asset_limits, asset_limits, strict=True)

    libraries = _as_dict(overrides.get("libraries"))
    if libraries:
        merged = dict(base.libraries)
        for key, url in libraries.items():
            value = _as_str(url)
            if not value:
                raise ConfigError(f"libraries.{key} must be a URL")
            merged[str(key)] = value
        changes["libraries"] = MappingProxyType(merged)

    bundle = _as_dict(overrides.get("bundle"))
    for key in ("max_entries", "max_compression_ratio"):
        if key in bundle:
            changes[key] = _positive_int(f"bundle.{key}", bundle[key])

    return replace(base, **changes) if changes else base


def _merge_sizes(
    section: str, current: Mapping[str, int], updates: Mapping[str, Any], *, strict: bool
) -> Mapping[str, int]:
    merged = dict(current)
    for key, value in updates.items():
        name = str(key)
        if strict and name not in merged:
            raise ConfigError(f"Unknown key '{name}' in {section}; expected one of {', '.join(sorted(merged))}")
        merged[name] = _positive_int(f"{section}.{name}", value)
    return MappingProxyType(merged)


def _positive_int(label: str, value: Any) -> int:
    number = _as_int(value)
    if number is None or number <= 0:
        raise ConfigError(f"{label} must be a positive integer")
    return number


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ClawGateConfig",
    "ConfigError",
    "build_rules",
    "load_config",
]
