from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .edits import EditConflict
    from .models import Edit


class MdcheckError(Exception):
    """Base class for errors raised by mdcheck."""


class ConfigError(MdcheckError, ValueError):
    """Raised when configuration data has the wrong shape."""


class RegistrationError(MdcheckError):
    """Raised when the check registry is misconfigured at startup."""


class DuplicateRuleIDError(RegistrationError):
    """Raised when two checks claim the same alias."""

    def __init__(self, rule_id: str, existing: str, incoming: str) -> None:
        super().__init__(
            f"Rule id {rule_id!r} of {incoming} conflicts with existing rule {existing}."
        )
        self.rule_id = rule_id
        self.existing = existing
        self.incoming = incoming


class CheckExecutionError(MdcheckError):
    """A single check failed while processing a single document."""

    def __init__(
        self,
        message: str,
        *,
        rule_ids: Sequence[str] = (),
        source_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.rule_ids = tuple(rule_ids)
        self.source_id = source_id

    @property
    def rule_id(self) -> str:
        return self.rule_ids[0] if self.rule_ids else "unknown-rule"

    def __str__(self) -> str:
        where = f"{self.source_id}: " if self.source_id else ""
        return f"{where}{self.rule_id} failed: {self.message}"


class InvalidEditCoordinates(MdcheckError):
    """An edit points outside the document it was proposed for."""

    def __init__(
        self, edit: "Edit", reason: str, *, rule_ids: Sequence[str] = ()
    ) -> None:
        super().__init__(reason)
        self.edit = edit
        self.reason = reason
        self.rule_ids = tuple(rule_ids)

    def __str__(self) -> str:
        owner = self.rule_ids[0] if self.rule_ids else "edit"
        return f"{owner} at line {self.edit.line}: {self.reason}"


class ConflictingEdits(MdcheckError):
    """Two or more proposed edits target overlapping regions."""

    def __init__(self, conflicts: Sequence["EditConflict"]) -> None:
        self.conflicts = list(conflicts)
        summary = "; ".join(conflict.describe() for conflict in self.conflicts[:5])
        more = len(self.conflicts) - 5
        if more > 0:
            summary += f"; and {more} more"
        super().__init__(f"{len(self.conflicts)} conflicting edit(s): {summary}")
