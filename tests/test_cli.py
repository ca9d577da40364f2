"""CLI parser behaviour and command exit codes."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from clawgate import cli
from clawgate.cli import EXIT_ERROR, EXIT_REJECTED, _build_parser, main
from clawgate.validators import ValidationTimeout
from tests._fixtures.submissions import game_script, html_page, zip_bundle


def _write(path: Path, content: str | bytes) -> Path:
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    return path


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "validate", "game.html"])
    assert args.verbose is True
    assert args.command == "validate"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["rules", "--verbose"])
    assert args.verbose is True
    assert args.command == "rules"


def test_cli_collects_repeated_library_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["validate", "game.js", "--format", "script", "--lib", "three", "--lib", "howler"]
    )
    assert args.libs == ["three", "howler"]
    assert args.format == "script"
    assert args.dimensions == "2d"


def test_cli_rejects_unknown_dimensions() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["validate", "game.html", "--dimensions", "4d"])


def test_validate_passing_file_exits_cleanly(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    page = _write(tmp_path / "game.html", html_page(game_script()))
    main(["validate", str(page), "--config", str(tmp_path)])
    assert f"PASS {page}" in capsys.readouterr().out


def test_validate_failing_file_exits_with_rejection(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    script = _write(tmp_path / "game.js", game_script(epilogue="eval('1');"))
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(script), "--format", "script", "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_REJECTED
    output = capsys.readouterr().out
    assert f"FAIL {script}" in output
    assert "error   FORBIDDEN_API" in output


def test_validate_json_report_lists_every_path(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    good = _write(tmp_path / "good.zip", zip_bundle({"game.js": game_script()}))
    bad = _write(tmp_path / "bad.zip", zip_bundle({"assets/a.png": b"x"}))
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(good), str(bad), "--json", "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_REJECTED

    report = json.loads(capsys.readouterr().out)
    assert [entry["path"] for entry in report] == [str(good), str(bad)]
    assert report[0]["ok"] is True and report[0]["error_code"] is None
    assert report[1]["error_code"] == "INVALID_ASSET_BUNDLE"


def test_validate_unreadable_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(tmp_path / "missing.html"), "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_ERROR


def test_validate_timeout_is_an_error_but_keeps_other_verdicts(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    original = cli.Orchestrator.validate

    def _expire_marked(self: cli.Orchestrator, payload: bytes, metadata: object = None):
        if b"slow-path" in payload:
            raise ValidationTimeout("methods", 0.5)
        return original(self, payload, metadata)

    monkeypatch.setattr(cli.Orchestrator, "validate", _expire_marked)
    slow = _write(tmp_path / "slow.html", html_page(game_script(prelude="// slow-path")))
    good = _write(tmp_path / "good.html", html_page(game_script()))
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(slow), str(good), "--jobs", "2", "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_ERROR
    captured = capsys.readouterr()
    assert f"ERROR {slow}" in captured.out
    assert f"PASS {good}" in captured.out
    assert f"failed for {slow}" in captured.err
    assert "exceeded 0.5s" in captured.err


def test_validate_json_report_marks_unfinished_submissions(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _expire(self: cli.Orchestrator, payload: bytes, metadata: object = None):
        raise ValidationTimeout("forbidden_apis", 1.0)

    monkeypatch.setattr(cli.Orchestrator, "validate", _expire)
    page = _write(tmp_path / "game.html", html_page(game_script()))
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(page), "--json", "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_ERROR
    report = json.loads(capsys.readouterr().out)
    assert report[0]["ok"] is False
    assert "forbidden_apis" in report[0]["incomplete"]


def test_invalid_config_is_an_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write(tmp_path / ".clawgate.yml", "rules:\n  size_limits:\n    html_4d: 10\n")
    page = _write(tmp_path / "game.html", html_page(game_script()))
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(page), "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_ERROR
    assert "Invalid configuration" in capsys.readouterr().err


def test_config_limits_apply_to_validation(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write(tmp_path / ".clawgate.yml", "rules:\n  size_limits:\n    script: 64\n")
    script = _write(tmp_path / "game.js", game_script())
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(script), "--format", "script", "--config", str(tmp_path)])
    assert excinfo.value.code == EXIT_REJECTED
    assert "FILE_TOO_LARGE" in capsys.readouterr().out


def test_strip_comments_prints_stripped_source(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _write(tmp_path / "game.js", "a = 1; // note\nb = 2;")
    main(["strip-comments", str(source)])
    assert capsys.readouterr().out == "a = 1; \nb = 2;"


def test_strip_comments_unreadable_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["strip-comments", str(tmp_path / "absent.js")])
    assert excinfo.value.code == EXIT_ERROR


def test_rules_json_reports_tables(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["rules", "--json", "--config", str(tmp_path)])
    summary = json.loads(capsys.readouterr().out)
    assert summary["size_limits"]["script"] == 51_200
    assert summary["cdn_host"] == "cdn.jsdelivr.net"
    assert summary["required_methods"][0] == "init"


def test_rules_text_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["rules", "--config", str(tmp_path)])
    output = capsys.readouterr().out
    assert "Allowed script host: cdn.jsdelivr.net" in output
    assert "[storage] localStorage" in output


def test_serve_hands_config_to_the_service(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    service = pytest.importorskip("clawgate.service")
    calls = []
    monkeypatch.setattr(service, "run_service", lambda **kwargs: calls.append(kwargs))
    main(["serve", "--port", "9001", "--config", str(tmp_path)])
    assert calls[0]["host"] == "127.0.0.1"
    assert calls[0]["port"] == 9001
    assert calls[0]["config"].root == tmp_path.resolve()
