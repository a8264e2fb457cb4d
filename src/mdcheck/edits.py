from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .errors import ConflictingEdits, InvalidEditCoordinates
from .models import Edit, Finding

logger = logging.getLogger(__name__)

# (line, column); whole-line regions use column 0 so they sort before any
# character on the same line.
Point = tuple[int, int]


@dataclass(frozen=True, slots=True)
class EditRegion:
    """Half-open span ``[start, end)`` an edit occupies in the original text."""

    start: Point
    end: Point

    def overlaps(self, other: "EditRegion") -> bool:
        if self.start == other.start:
            return True
        return self.start < other.end and other.start < self.end


def edit_region(edit: Edit) -> EditRegion:
    if edit.is_line_edit:
        return EditRegion((edit.line, 0), (edit.line + edit.delete_count, 0))
    assert edit.column is not None
    return EditRegion(
        (edit.line, edit.column), (edit.line, edit.column + edit.delete_length)
    )


@dataclass(frozen=True, slots=True)
class EditConflict:
    """Two edits whose regions overlap or share a start position."""

    first: Edit
    second: Edit
    first_finding: Finding | None = None
    second_finding: Finding | None = None

    @property
    def rule_ids(self) -> tuple[str, str]:
        return (_owner(self.first_finding), _owner(self.second_finding))

    @property
    def line(self) -> int:
        return min(self.first.line, self.second.line)

    @property
    def regions(self) -> tuple[EditRegion, EditRegion]:
        return (edit_region(self.first), edit_region(self.second))

    def describe(self) -> str:
        first_id, second_id = self.rule_ids
        return (
            f"{first_id} (line {self.first.line}) conflicts with "
            f"{second_id} (line {self.second.line})"
        )


def _owner(finding: Finding | None) -> str:
    return finding.primary_id if finding is not None else "edit"


@dataclass(slots=True)
class FixResult:
    """Outcome of applying the edits carried by a batch of findings."""

    lines: list[str]
    applied: list[Finding] = field(default_factory=list)
    dropped: list[Finding] = field(default_factory=list)
    conflicts: list[EditConflict] = field(default_factory=list)
    invalid: list[InvalidEditCoordinates] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def validate_edit(edit: Edit, lines: Sequence[str]) -> None:
    """Raise :class:`InvalidEditCoordinates` when ``edit`` does not fit ``lines``."""
    line_count = len(lines)
    if edit.line < 1:
        raise InvalidEditCoordinates(edit, f"line {edit.line} is before line 1")
    if edit.is_line_edit:
        if edit.delete_count < 0:
            raise InvalidEditCoordinates(edit, "negative delete count")
        last = edit.line + edit.delete_count - 1
        if edit.line > line_count + 1 or last > line_count:
            raise InvalidEditCoordinates(
                edit,
                f"lines {edit.line}..{last} are outside a {line_count}-line document",
            )
        return
    if edit.line > line_count:
        raise InvalidEditCoordinates(
            edit, f"line {edit.line} is outside a {line_count}-line document"
        )
    assert edit.column is not None
    width = len(lines[edit.line - 1])
    if edit.column < 1 or edit.column > width + 1:
        raise InvalidEditCoordinates(
            edit, f"column {edit.column} is outside a {width}-character line"
        )
    if edit.delete_length < 0:
        raise InvalidEditCoordinates(edit, "negative delete length")
    if edit.column - 1 + edit.delete_length > width:
        raise InvalidEditCoordinates(
            edit,
            f"deleting {edit.delete_length} characters from column {edit.column} "
            f"runs past a {width}-character line",
        )


def _conflicting_pairs(edits: Sequence[Edit]) -> list[tuple[int, int]]:
    """Return every conflicting ``(i, j)`` index pair, ``i`` sorting first.

    A sweep over all edits ordered by region start: for each edit every
    later-starting edit is compared until one starts at or after its end.
    """
    regions = [edit_region(edit) for edit in edits]
    order = sorted(range(len(edits)), key=lambda idx: (regions[idx].start, idx))
    pairs: list[tuple[int, int]] = []
    for pos, idx in enumerate(order):
        region = regions[idx]
        for other in order[pos + 1 :]:
            candidate = regions[other]
            if candidate.start >= region.end and candidate.start != region.start:
                break
            pairs.append((idx, other))
    return pairs


def find_conflicts(findings: Sequence[Finding]) -> list[EditConflict]:
    """Return every pair of fixable findings whose edits conflict."""
    fixable = [finding for finding in findings if finding.edit is not None]
    edits = [finding.edit for finding in fixable]
    conflicts = [
        EditConflict(edits[i], edits[j], fixable[i], fixable[j])  # type: ignore[arg-type]
        for i, j in _conflicting_pairs(edits)  # type: ignore[arg-type]
    ]
    return sorted(
        conflicts,
        key=lambda c: (edit_region(c.first).start, edit_region(c.second).start),
    )


def apply_edits(lines: Sequence[str], edits: Iterable[Edit]) -> list[str]:
    """Apply non-conflicting edits to ``lines`` in a single bottom-to-top pass.

    Every edit uses original-document coordinates. Raises
    :class:`ConflictingEdits` (and changes nothing) if any two conflict, and
    :class:`InvalidEditCoordinates` if an edit does not fit the document.
    """
    edits = list(edits)
    for edit in edits:
        validate_edit(edit, lines)
    pairs = _conflicting_pairs(edits)
    if pairs:
        raise ConflictingEdits([EditConflict(edits[i], edits[j]) for i, j in pairs])

    result = list(lines)
    for edit in sorted(edits, key=lambda e: edit_region(e).start, reverse=True):
        _apply_one(result, edit)
    return result


def _apply_one(lines: list[str], edit: Edit) -> None:
    index = edit.line - 1
    if edit.is_line_edit:
        lines[index : index + edit.delete_count] = edit.inserted_lines()
        return
    assert edit.column is not None
    original = lines[index]
    start = edit.column - 1
    rewritten = original[:start] + edit.text + original[start + edit.delete_length :]
    lines[index : index + 1] = rewritten.split("\n")


def select_non_conflicting(
    findings: Sequence[Finding],
) -> tuple[list[Finding], list[Finding]]:
    """Keep fixable findings in the given order, dropping any that conflict
    with one already kept. Returns ``(kept, dropped)``."""
    kept: list[Finding] = []
    kept_regions: list[EditRegion] = []
    dropped: list[Finding] = []
    for finding in findings:
        if finding.edit is None:
            continue
        region = edit_region(finding.edit)
        if any(region.overlaps(other) for other in kept_regions):
            dropped.append(finding)
            continue
        kept.append(finding)
        kept_regions.append(region)
    return kept, dropped


def apply_fixes(
    lines: Sequence[str], findings: Sequence[Finding], best_effort: bool = False
) -> FixResult:
    """Apply the edits attached to ``findings``.

    In strict mode any conflict raises :class:`ConflictingEdits` before
    anything is applied. In best-effort mode findings are taken in the order
    given and an edit conflicting with an earlier kept edit is dropped.
    Findings proposing equal edits share one application and all count as
    applied. Edits with invalid coordinates are always dropped and reported.
    """
    invalid: list[InvalidEditCoordinates] = []
    candidates: list[Finding] = []
    dropped: list[Finding] = []
    for finding in findings:
        if finding.edit is None:
            continue
        try:
            validate_edit(finding.edit, lines)
        except InvalidEditCoordinates as exc:
            exc.rule_ids = finding.rule_ids
            logger.warning("Dropping edit: %s", exc)
            invalid.append(exc)
            dropped.append(finding)
            continue
        candidates.append(finding)

    # Equal edits from several findings are one edit, applied once.
    unique: list[Finding] = []
    seen: set[Edit] = set()
    for finding in candidates:
        if finding.edit not in seen:
            seen.add(finding.edit)  # type: ignore[arg-type]
            unique.append(finding)

    conflicts = find_conflicts(unique)
    if conflicts and not best_effort:
        raise ConflictingEdits(conflicts)
    kept = unique
    if conflicts:
        for conflict in conflicts:
            logger.warning("Conflicting edits: %s", conflict.describe())
        kept, _ = select_non_conflicting(unique)

    kept_edits = {finding.edit for finding in kept}
    applied = [finding for finding in candidates if finding.edit in kept_edits]
    dropped.extend(finding for finding in candidates if finding.edit not in kept_edits)
    new_lines = apply_edits(lines, [finding.edit for finding in kept])  # type: ignore[misc]
    return FixResult(
        lines=new_lines,
        applied=applied,
        dropped=dropped,
        conflicts=conflicts,
        invalid=invalid,
    )
