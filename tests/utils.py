from __future__ import annotations

from typing import Any, Iterable, Sequence

from mdcheck.checks import Check
from mdcheck.edits import apply_fixes
from mdcheck.models import Document, DocumentView, Finding, split_text
from mdcheck.pipeline import build_view


def make_view(text: str, source_id: str = "doc.md") -> DocumentView:
    """Build the shared document view for ``text``."""
    _, view = build_view(Document(source_id, text))
    return view


def run_check(check: Check, text: str, **options: Any) -> list[Finding]:
    """Run a single check with its defaults overridden by ``options``."""
    view = make_view(text).with_config({**check.default_config, **options})
    result = check.run(view)
    assert isinstance(result, list)
    return result


def fix_text(text: str, findings: Sequence[Finding]) -> str:
    """Apply the edits of ``findings`` to ``text`` in strict mode."""
    layout = split_text(text)
    result = apply_fixes(layout.lines, findings)
    return layout.join(result.lines)


def finding(
    line: int, column: int | None = None, rule: str = "T001", **kwargs: Any
) -> Finding:
    message = kwargs.pop("message", "test")
    return Finding(rule_ids=(rule,), message=message, line=line, column=column, **kwargs)


class StaticCheck(Check):
    """Returns a fixed result (or calls a function) and records each view it saw."""

    def __init__(
        self, names: Iterable[str], result: Any = (), tags: Iterable[str] = ()
    ) -> None:
        self.names = tuple(names)
        self.tags = tuple(tags)
        self.description = "static"
        self._result = result
        self.seen: list[DocumentView] = []

    def run(self, view: DocumentView) -> Any:
        self.seen.append(view)
        if callable(self._result):
            return self._result(view)
        if isinstance(self._result, (list, tuple)):
            return list(self._result)
        return self._result


class RaisingCheck(Check):
    """Always raises the configured exception."""

    def __init__(self, names: Iterable[str], error: Exception) -> None:
        self.names = tuple(names)
        self._error = error

    def run(self, view: DocumentView) -> list[Finding]:
        raise self._error
