"""Runs the validation stages for one submission and aggregates the verdict."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .formats import FormatError, resolve_context
from .logging import get_logger
from .models import Submission, SubmissionMetadata, ValidationResult
from .rules.tables import DEFAULT_RULES, RuleTables
from .validators import (
    Deadline,
    FatalValidationError,
    ValidationContext,
    ValidationTimeout,
    Validator,
    default_advisories,
    default_stages,
)

MetadataLike = Union[SubmissionMetadata, Mapping[str, Any], None]


class Orchestrator:
    """Coordinates format resolution and the validation stages.

    The orchestrator holds only immutable rule tables and stateless stages, so
    one instance may validate many submissions concurrently.
    """

    def __init__(
        self,
        rules: RuleTables | None = None,
        *,
        timeout_seconds: Optional[float] = 10.0,
        max_workers: int = 4,
        stages: Optional[Iterable[Validator]] = None,
        advisories: Optional[Iterable[Validator]] = None,
    ) -> None:
        self.rules = rules or DEFAULT_RULES
        self.timeout_seconds = timeout_seconds
        self.max_workers = max(1, max_workers)
        self.stages: Tuple[Validator, ...] = tuple(stages if stages is not None else default_stages())
        self.advisories: Tuple[Validator, ...] = tuple(
            advisories if advisories is not None else default_advisories()
        )
        self.logger = get_logger("orchestrator")

    def validate(self, payload: bytes, metadata: MetadataLike = None) -> ValidationResult:
        """Validate one submission; raises only ``ValidationTimeout``."""
        submission = Submission(payload=bytes(payload), metadata=_coerce_metadata(metadata))
        result = ValidationResult()
        deadline = Deadline(self.timeout_seconds)

        try:
            resolved = resolve_context(submission, self.rules)
        except FormatError as exc:
            result.add(exc.issue)
            self._log_verdict(result, "unresolved", len(submission.payload))
            return result
        self.logger.debug(
            "Resolved %d byte submission as %s (%s, limit %d)",
            len(submission.payload),
            resolved.kind,
            resolved.dimensions,
            resolved.size_limit,
        )

        context = ValidationContext(
            submission=submission,
            resolved=resolved,
            rules=self.rules,
            deadline=deadline,
        )
        for stage in self.stages:
            deadline.check(stage.name)
            if not stage.supports(context):
                continue
            try:
                issues = stage.validate(context)
            except FatalValidationError as exc:
                result.extend(exc.issues)
                self.logger.debug("Stage %s stopped the pipeline: %s", stage.name, exc)
                break
            result.extend(issues)
            if issues:
                self.logger.debug("Stage %s reported %d issue(s)", stage.name, len(issues))

        if context.text is not None:
            for advisory in self.advisories:
                deadline.check(advisory.name)
                if advisory.supports(context):
                    result.extend(advisory.validate(context))

        self._log_verdict(result, resolved.kind, len(submission.payload))
        return result

    def validate_many(
        self, submissions: Sequence[Tuple[bytes, MetadataLike]]
    ) -> List[ValidationResult]:
        """Validate independent submissions concurrently, preserving input order.

        A submission that runs out of time yields an ``incomplete`` result
        instead of discarding the verdicts of the rest of the batch.
        """
        if len(submissions) <= 1 or self.max_workers == 1:
            return [self._validate_one(payload, metadata) for payload, metadata in submissions]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._validate_one, payload, metadata)
                for payload, metadata in submissions
            ]
            return [future.result() for future in futures]

    def _validate_one(self, payload: bytes, metadata: MetadataLike) -> ValidationResult:
        try:
            return self.validate(payload, metadata)
        except ValidationTimeout as exc:
            self.logger.warning("Abandoned %d byte submission: %s", len(payload), exc)
            return ValidationResult(incomplete=str(exc))

    def _log_verdict(self, result: ValidationResult, kind: str, size: int) -> None:
        if result.ok:
            self.logger.info(
                "Accepted %s submission (%d bytes, %d warning(s))", kind, size, len(result.warnings)
            )
        else:
            self.logger.info(
                "Rejected %s submission (%d bytes): %s", kind, size, ", ".join(result.codes())
            )


def _coerce_metadata(metadata: MetadataLike) -> SubmissionMetadata:
    if isinstance(metadata, SubmissionMetadata):
        return metadata
    return SubmissionMetadata.from_mapping(metadata)


def validate(
    payload: bytes, metadata: MetadataLike = None, *, rules: RuleTables | None = None
) -> ValidationResult:
    """Validate ``payload`` with a throwaway orchestrator."""
    return Orchestrator(rules).validate(payload, metadata)


__all__ = ["MetadataLike", "Orchestrator", "validate"]
