"""Pipeline ordering, fatal handling, concurrency and deadlines."""

from __future__ import annotations

import time
from typing import List

import pytest

import clawgate
from clawgate import IssueCode, Orchestrator, SubmissionMetadata, ValidationTimeout
from clawgate.models import ValidationIssue
from clawgate.validators import Deadline, SizeValidator, ValidationContext, Validator
from tests._fixtures.submissions import game_script, html_page, pad_to, zip_bundle


class _SlowStage(Validator):
    name = "slow"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        time.sleep(0.05)
        return []


class _SlowOnMarkerStage(Validator):
    name = "marked"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        if b"slow-path" in context.submission.payload:
            time.sleep(0.5)
        return []


def _corpus() -> list:
    script = game_script()
    return [
        (html_page(script).encode("utf-8"), None),
        (html_page(script, canvas_id=None).encode("utf-8"), {"dimensions": "2d"}),
        (script.encode("utf-8"), {"format": "script"}),
        (game_script(methods=["init"], epilogue="eval(x);").encode("utf-8"), {"format": "script"}),
        (pad_to(script, 51_201), {"format": "script"}),
        (zip_bundle({"game.js": script, "assets/a.png": b"x"}), {"tier": "2d_basic"}),
        (zip_bundle({"assets/a.png": b"x"}), None),
        (b"PK\x03\x04broken", None),
        (b"", None),
    ]


def test_module_level_validate_matches_orchestrator() -> None:
    payload = game_script().encode("utf-8")
    assert clawgate.validate(payload, {"format": "script"}).ok
    assert clawgate.validate(payload, SubmissionMetadata(format="script")).ok


def test_ok_always_mirrors_error_list(orchestrator: Orchestrator) -> None:
    for payload, metadata in _corpus():
        result = orchestrator.validate(payload, metadata)
        assert result.ok == (not result.errors)
        assert all(issue.severity == "error" for issue in result.errors)
        assert all(issue.severity == "warning" for issue in result.warnings)


def test_concurrent_runs_equal_sequential_runs() -> None:
    corpus = _corpus() * 4
    sequential = Orchestrator(timeout_seconds=None, max_workers=1).validate_many(corpus)
    concurrent = Orchestrator(timeout_seconds=None, max_workers=8).validate_many(corpus)
    assert [result.to_dict() for result in concurrent] == [result.to_dict() for result in sequential]


def test_validate_many_preserves_input_order(orchestrator: Orchestrator) -> None:
    corpus = _corpus()
    results = orchestrator.validate_many(corpus)
    expected = [orchestrator.validate(payload, metadata).codes() for payload, metadata in corpus]
    assert [result.codes() for result in results] == expected


def test_fatal_stage_stops_later_stages(orchestrator: Orchestrator) -> None:
    source = "localStorage.x = 1; // no game object"
    result = orchestrator.validate(source.encode("utf-8"), {"format": "script"})
    assert result.codes() == [IssueCode.MISSING_GAME_OBJECT.value]


def test_format_errors_short_circuit(orchestrator: Orchestrator) -> None:
    result = orchestrator.validate(b"<html>", {"dimensions": "4d"})
    assert result.codes() == [IssueCode.INVALID_GAME_FILE.value]
    assert result.warnings == []


@pytest.mark.parametrize(
    "payload",
    [
        b"\x00\x01\x02",
        b"PK\x05\x06" + b"\x00" * 18,
        b"<html><script>`${",
        b"<script>/[/",
        b"window.ClawmachineGame = {" * 100,
        "<!DOCTYPE html><html><body><script>\u0000</script>".encode("utf-8"),
    ],
)
def test_malformed_input_degrades_to_codes(orchestrator: Orchestrator, payload: bytes) -> None:
    result = orchestrator.validate(payload)
    assert not result.ok
    assert all(isinstance(issue.code, IssueCode) for issue in result.errors)


def test_deadline_expiry_raises_timeout() -> None:
    orchestrator = Orchestrator(timeout_seconds=0.01, stages=[_SlowStage(), SizeValidator()])
    with pytest.raises(ValidationTimeout) as excinfo:
        orchestrator.validate(game_script().encode("utf-8"), {"format": "script"})
    assert excinfo.value.stage == "size"


@pytest.mark.parametrize("max_workers", [1, 2])
def test_batch_timeout_only_affects_the_slow_submission(max_workers: int) -> None:
    orchestrator = Orchestrator(
        timeout_seconds=0.2,
        max_workers=max_workers,
        stages=[_SlowOnMarkerStage(), SizeValidator()],
    )
    slow = game_script(prelude="// slow-path").encode("utf-8")
    fast = game_script().encode("utf-8")
    results = orchestrator.validate_many([(slow, {"format": "script"}), (fast, {"format": "script"})])

    assert results[0].ok is False
    assert results[0].errors == []
    assert "'size'" in (results[0].incomplete or "")
    assert results[0].to_dict()["incomplete"] == results[0].incomplete
    assert results[1].ok
    assert results[1].incomplete is None


def test_unreadable_libs_metadata_is_rejected(orchestrator: Orchestrator) -> None:
    for libs in (5, True):
        result = orchestrator.validate(game_script().encode("utf-8"), {"format": "script", "libs": libs})
        assert result.codes() == [IssueCode.INVALID_GAME_FILE.value]
        assert result.errors[0].detail == {"field": "libs"}


def test_deadline_uses_injected_clock() -> None:
    now = [100.0]
    deadline = Deadline(5.0, clock=lambda: now[0])
    deadline.check("resolve")
    now[0] = 105.0
    deadline.check("resolve")
    now[0] = 105.5
    with pytest.raises(ValidationTimeout):
        deadline.check("methods")


def test_deadline_without_budget_never_expires() -> None:
    Deadline(None, clock=lambda: 1e12).check("anything")


def test_result_serialises_to_plain_data(orchestrator: Orchestrator) -> None:
    result = orchestrator.validate(html_page(game_script(methods=[]), viewport=False).encode("utf-8"))
    data = result.to_dict()
    assert data["ok"] is False
    assert data["errors"][0] == {
        "code": "MISSING_METHOD",
        "severity": "error",
        "message": "ClawmachineGame is missing required method 'init'",
        "detail": {"method": "init"},
    }
    assert data["warnings"][0]["code"] == "MISSING_VIEWPORT"


def test_verdict_is_logged(orchestrator: Orchestrator, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("INFO", logger="clawgate.orchestrator"):
        orchestrator.validate(b"", None)
    assert any("Rejected" in record.getMessage() for record in caplog.records)
