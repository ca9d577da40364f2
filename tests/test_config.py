"""Tests for clawgate.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from clawgate import DEFAULT_RULES, IssueCode, Orchestrator
from clawgate.config import ClawGateConfig, ConfigError, build_rules, load_config
from clawgate.rules import MIB
from tests._fixtures.submissions import game_script, incompressible, zip_bundle


def _config_file(tmp_path: Path, text: str) -> Path:
    path = tmp_path / ".clawgate.yml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ClawGateConfig)
    assert config.root == tmp_path.resolve()
    assert config.timeout_seconds == 10.0
    assert config.max_workers == 4
    assert config.rules is DEFAULT_RULES


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    _config_file(tmp_path, "\n")
    assert load_config(tmp_path).rules is DEFAULT_RULES


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = _config_file(
        tmp_path,
        """
timeout_seconds: 2.5
max_workers: 8
rules:
  version: "staging-1"
  size_limits:
    script: 65536
  tiers:
    2d_arcade: 8388608
  asset_limits:
    audio: 6291456
  libraries:
    tone: "https://cdn.jsdelivr.net/npm/tone@14.7.77/build/Tone.js"
  bundle:
    max_entries: 50
""",
    )

    config = load_config(config_file)
    rules = config.rules

    assert config.timeout_seconds == 2.5
    assert config.max_workers == 8
    assert rules.version == "staging-1"
    assert rules.size_limits["script"] == 65_536
    assert rules.size_limits["html_2d"] == DEFAULT_RULES.size_limits["html_2d"]
    assert rules.tier_budgets["2d_arcade"] == 8 * MIB
    assert rules.tier_budgets["2d_basic"] == 5 * MIB
    assert rules.asset_limits["audio"] == 6 * MIB
    assert "tone" in rules.libraries and "three" in rules.libraries
    assert rules.max_entries == 50


def test_overrides_never_mutate_defaults() -> None:
    build_rules({"size_limits": {"script": 10}})
    assert DEFAULT_RULES.size_limits["script"] == 51_200


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "rules:\n  size_limits:\n    html_4d: 10\n",
        "rules:\n  asset_limits:\n    video: 10\n",
        "rules:\n  size_limits:\n    script: -1\n",
        "rules:\n  bundle:\n    max_entries: zero\n",
        "timeout_seconds: 0\n",
        "max_workers: 0\n",
        "rules: {size_limits: [\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    _config_file(tmp_path, text)
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_custom_tier_is_usable_by_submissions(tmp_path: Path) -> None:
    _config_file(tmp_path, "rules:\n  tiers:\n    2d_tiny: 65536\n")
    config = load_config(tmp_path)
    orchestrator = Orchestrator(config.rules, timeout_seconds=None)

    payload = zip_bundle({"game.js": game_script(), "assets/a.png": incompressible(70_000)})
    assert orchestrator.validate(payload, {"tier": "2d_basic"}).ok
    result = orchestrator.validate(payload, {"tier": "2d_tiny"})
    assert result.codes() == [IssueCode.FILE_TOO_LARGE.value]


def test_unknown_tier_is_invalid_asset_bundle(orchestrator: Orchestrator) -> None:
    result = orchestrator.validate(zip_bundle({"game.js": game_script()}), {"tier": "2d_tiny"})
    assert result.codes() == [IssueCode.INVALID_ASSET_BUNDLE.value]
