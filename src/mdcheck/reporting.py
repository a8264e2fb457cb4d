from __future__ import annotations

import json
from typing import List, Mapping

from .edits import EditConflict
from .engine import LintReport
from .errors import CheckExecutionError, InvalidEditCoordinates
from .models import Finding


def format_finding(source_id: str, finding: Finding) -> str:
    """Render ``path:line[:column] ID/alias message [detail] [Context: "..."]``."""
    parts = [
        f"{source_id}:{finding.location()}",
        "/".join(finding.rule_ids),
        finding.message,
    ]
    if finding.detail:
        parts.append(f"[{finding.detail}]")
    if finding.context:
        parts.append(f'[Context: "{finding.context}"]')
    return " ".join(parts)


def format_failure(failure: CheckExecutionError) -> str:
    names = "/".join(failure.rule_ids)
    return f"{failure.source_id or '-'}: check {names} failed: {failure.message}"


def format_invalid_edit(source_id: str, error: InvalidEditCoordinates) -> str:
    names = "/".join(error.rule_ids) or "edit"
    return f"{source_id}:{error.edit.line} dropped {names} edit: {error.reason}"


def format_conflict(source_id: str, conflict: EditConflict) -> str:
    return f"{source_id}:{conflict.line} conflicting edits: {conflict.describe()}"


def report_lines(report: LintReport) -> List[str]:
    source_id = report.source_id
    lines = [format_finding(source_id, finding) for finding in report.findings]
    lines.extend(format_failure(failure) for failure in report.failures)
    lines.extend(format_invalid_edit(source_id, error) for error in report.invalid_edits)
    if report.skipped:
        lines.append(f"{source_id}: skipped checks {', '.join(report.skipped)}")
    return lines


def render_text(reports: Mapping[str, LintReport]) -> str:
    lines: List[str] = []
    for source_id in sorted(reports):
        lines.extend(report_lines(reports[source_id]))
    return "\n".join(lines)


def render_json(reports: Mapping[str, LintReport]) -> str:
    """Serialize reports, sorted by source id, as an indented JSON document."""
    payload = [reports[source_id].to_dict() for source_id in sorted(reports)]
    return json.dumps({"documents": payload}, indent=2)
