from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

from .config import MdcheckConfig
from .edits import EditConflict, apply_fixes
from .engine import LintReport, run_checks
from .errors import ConflictingEdits
from .inline import InlineConfig
from .models import Document, DocumentView, Finding, TextLayout, split_text
from .parser import parse_lines
from .registry import CheckRegistry

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


@dataclass(slots=True)
class FixOutcome:
    """Result of fixing one document."""

    document: Document
    report: LintReport
    applied: List[Finding] = field(default_factory=list)
    conflicts: List[EditConflict] = field(default_factory=list)
    passes: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def build_view(
    document: Document, config: MdcheckConfig | None = None
) -> Tuple[TextLayout, DocumentView]:
    """Split and parse ``document`` into the view every check shares."""
    front_matter = True if config is None else config.front_matter
    layout = split_text(document.text)
    tokens = parse_lines(layout.lines, front_matter=front_matter)
    return layout, DocumentView(document.source_id, layout.lines, tokens)


def _lint(
    document: Document,
    registry: CheckRegistry,
    config: MdcheckConfig,
    cancel_event: threading.Event | None,
) -> Tuple[TextLayout, LintReport]:
    layout, view = build_view(document, config)
    inline = None
    if config.inline_config:
        inline = InlineConfig.from_lines(view.lines, registry, view.tokens)
    active = registry.resolve(
        config.rules, disabled=inline.file_disabled if inline else ()
    )
    deadline = None
    if config.timeout_seconds:
        deadline = time.monotonic() + config.timeout_seconds
    report = run_checks(
        view,
        active,
        max_workers=config.parallel_checks,
        cancel_event=cancel_event,
        deadline=deadline,
    )
    if inline is not None:
        report.findings = inline.filter(report.findings)
    return layout, report


def lint_document(
    document: Document,
    registry: CheckRegistry,
    config: MdcheckConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> LintReport:
    """Run every enabled check against a single document."""
    _, report = _lint(document, registry, config or MdcheckConfig(), cancel_event)
    return report


def fix_document(
    document: Document,
    registry: CheckRegistry,
    config: MdcheckConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> FixOutcome:
    """Lint and apply fixes until nothing fixable remains or passes run out.

    Raises :class:`ConflictingEdits` when edits conflict and
    ``config.best_effort`` is off.
    """
    config = config or MdcheckConfig()
    current = Document(document.source_id, document.text)
    layout, report = _lint(current, registry, config, cancel_event)
    outcome = FixOutcome(document=current, report=report)

    for _ in range(max(1, config.fix_passes)):
        fixable = report.fixable()
        if not fixable:
            break
        result = apply_fixes(layout.lines, fixable, best_effort=config.best_effort)
        outcome.passes += 1
        outcome.conflicts.extend(result.conflicts)
        if not result.applied:
            break
        outcome.applied.extend(result.applied)
        current = Document(current.source_id, layout.join(result.lines))
        logger.info(
            "Applied %d fix(es) to %s on pass %d",
            len(result.applied),
            current.source_id,
            outcome.passes,
        )
        layout, report = _lint(current, registry, config, cancel_event)

    outcome.document = current
    outcome.report = report
    return outcome


def _map_documents(
    documents: Sequence[Document],
    func: Callable[[Document], ResultT],
    workers: int,
) -> List[ResultT]:
    if workers > 1 and len(documents) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(func, documents))
    return [func(document) for document in documents]


def lint_corpus(
    documents: Sequence[Document],
    registry: CheckRegistry,
    config: MdcheckConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> Dict[str, LintReport]:
    """Lint all documents independently and return the per-document reports."""
    config = config or MdcheckConfig()
    reports = _map_documents(
        documents,
        lambda doc: lint_document(doc, registry, config, cancel_event),
        config.parallel_files,
    )
    return {report.source_id: report for report in reports}


def fix_corpus(
    documents: Sequence[Document],
    registry: CheckRegistry,
    config: MdcheckConfig | None = None,
) -> Tuple[Dict[str, FixOutcome], Dict[str, ConflictingEdits]]:
    """Fix all documents independently.

    Returns the outcomes of documents that could be fixed and, separately,
    the conflict reports of those that could not.
    """
    config = config or MdcheckConfig()

    def fix_one(document: Document) -> Tuple[str, FixOutcome | ConflictingEdits]:
        try:
            return document.source_id, fix_document(document, registry, config)
        except ConflictingEdits as exc:
            logger.warning("Not fixing %s: %s", document.source_id, exc)
            return document.source_id, exc

    outcomes: Dict[str, FixOutcome] = {}
    failed: Dict[str, ConflictingEdits] = {}
    for source_id, result in _map_documents(documents, fix_one, config.parallel_files):
        if isinstance(result, ConflictingEdits):
            failed[source_id] = result
        else:
            outcomes[source_id] = result
    return outcomes, failed
