from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Sequence, TypedDict

from .edits import validate_edit
from .errors import CheckExecutionError, InvalidEditCoordinates
from .models import DocumentView, Finding
from .registry import ActiveCheck

logger = logging.getLogger(__name__)


class FailurePayload(TypedDict):
    rule_ids: List[str]
    message: str


class InvalidEditPayload(TypedDict):
    rule_ids: List[str]
    line: int
    reason: str


class ReportPayload(TypedDict):
    source_id: str
    findings: List[Dict[str, Any]]
    failures: List[FailurePayload]
    invalid_edits: List[InvalidEditPayload]
    skipped: List[str]


@dataclass(slots=True)
class LintReport:
    """Everything one engine pass produced for one document."""

    source_id: str
    findings: list[Finding] = field(default_factory=list)
    failures: list[CheckExecutionError] = field(default_factory=list)
    invalid_edits: list[InvalidEditCoordinates] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.findings and not self.failures

    @property
    def complete(self) -> bool:
        return not self.skipped

    def fixable(self) -> list[Finding]:
        return [finding for finding in self.findings if finding.edit is not None]

    def to_dict(self) -> ReportPayload:
        return {
            "source_id": self.source_id,
            "findings": [finding.to_dict() for finding in self.findings],
            "failures": [
                {"rule_ids": list(failure.rule_ids), "message": failure.message}
                for failure in self.failures
            ],
            "invalid_edits": [
                {
                    "rule_ids": list(error.rule_ids),
                    "line": error.edit.line,
                    "reason": error.reason,
                }
                for error in self.invalid_edits
            ],
            "skipped": list(self.skipped),
        }


@dataclass(slots=True)
class _CheckOutcome:
    findings: list[Finding] = field(default_factory=list)
    failure: CheckExecutionError | None = None
    invalid: list[InvalidEditCoordinates] = field(default_factory=list)
    skipped: bool = False


def finding_sort_key(finding: Finding) -> tuple[Any, ...]:
    """Line, then missing column before any column, then first rule id.

    The remaining fields only make the order total so that reports are
    identical regardless of the order checks produced them in.
    """
    return (
        finding.line,
        finding.column is not None,
        finding.column or 0,
        finding.primary_id,
        finding.rule_ids,
        finding.message,
        -1 if finding.length is None else finding.length,
        finding.detail or "",
        finding.context or "",
        repr(finding.edit) if finding.edit else "",
    )


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    return sorted(findings, key=finding_sort_key)


def _should_stop(cancel_event: threading.Event | None, deadline: float | None) -> bool:
    if cancel_event is not None and cancel_event.is_set():
        return True
    return deadline is not None and time.monotonic() >= deadline


def _coerce_findings(result: Any) -> list[Finding] | None:
    if isinstance(result, (str, bytes)) or not isinstance(result, (list, tuple)):
        return None
    if not all(isinstance(item, Finding) for item in result):
        return None
    return list(result)


def _run_one(
    view: DocumentView,
    active: ActiveCheck,
    cancel_event: threading.Event | None,
    deadline: float | None,
) -> _CheckOutcome:
    if _should_stop(cancel_event, deadline):
        return _CheckOutcome(skipped=True)

    scoped = view.with_config(active.config)
    started = time.perf_counter()
    try:
        result = active.check.run(scoped)
    except Exception as exc:
        logger.warning(
            "Check %s failed on %s: %s", active.primary_id, view.source_id, exc
        )
        return _CheckOutcome(
            failure=CheckExecutionError(
                f"{type(exc).__name__}: {exc}",
                rule_ids=active.names,
                source_id=view.source_id,
            )
        )
    logger.debug(
        "Check %s ran on %s in %.4fs",
        active.primary_id,
        view.source_id,
        time.perf_counter() - started,
    )

    if isinstance(result, CheckExecutionError):
        if not result.rule_ids:
            result.rule_ids = active.names
        if result.source_id is None:
            result.source_id = view.source_id
        logger.warning("Check %s reported a failure: %s", active.primary_id, result.message)
        return _CheckOutcome(failure=result)

    findings = _coerce_findings(result)
    if findings is None:
        message = f"returned {type(result).__name__} instead of a sequence of findings"
        logger.warning("Check %s %s", active.primary_id, message)
        return _CheckOutcome(
            failure=CheckExecutionError(
                message, rule_ids=active.names, source_id=view.source_id
            )
        )

    outcome = _CheckOutcome()
    for finding in findings:
        if not finding.rule_ids:
            finding = replace(finding, rule_ids=active.names)
        if finding.edit is not None:
            try:
                validate_edit(finding.edit, view.lines)
            except InvalidEditCoordinates as exc:
                exc.rule_ids = finding.rule_ids
                logger.warning("Dropping edit on %s: %s", view.source_id, exc)
                outcome.invalid.append(exc)
                finding = finding.without_edit()
        outcome.findings.append(finding)
    return outcome


def run_checks(
    view: DocumentView,
    active: Sequence[ActiveCheck],
    *,
    max_workers: int = 1,
    cancel_event: threading.Event | None = None,
    deadline: float | None = None,
) -> LintReport:
    """Run every active check once against ``view`` and collect sorted findings.

    A failing check is recorded in ``failures`` and never stops the others.
    With ``max_workers > 1`` checks run on a thread pool; results are merged
    in the order of ``active`` so the report matches a sequential run.
    ``cancel_event`` and ``deadline`` (a ``time.monotonic()`` value) are
    consulted before each check starts.
    """
    if max_workers > 1 and len(active) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(_run_one, view, item, cancel_event, deadline)
                for item in active
            ]
            outcomes = [future.result() for future in futures]
    else:
        outcomes = [_run_one(view, item, cancel_event, deadline) for item in active]

    report = LintReport(source_id=view.source_id)
    collected: list[Finding] = []
    for item, outcome in zip(active, outcomes):
        if outcome.skipped:
            report.skipped.append(item.primary_id)
            continue
        if outcome.failure is not None:
            report.failures.append(outcome.failure)
            continue
        collected.extend(outcome.findings)
        report.invalid_edits.extend(outcome.invalid)
    if report.skipped:
        logger.info(
            "Skipped %d check(s) on %s after cancellation", len(report.skipped), view.source_id
        )
    report.findings = sort_findings(collected)
    return report
