from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .tokens import TokenTree


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """A 1-based (line, column) location in the original document."""

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class Range:
    """Start and end positions of a multi-line span."""

    start: Position
    end: Position

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "start": {"line": self.start.line, "column": self.start.column},
            "end": {"line": self.end.line, "column": self.end.column},
        }


class EditKind(Enum):
    CHARACTERS = "characters"
    LINES = "lines"


@dataclass(frozen=True, slots=True)
class Edit:
    """A proposed text mutation expressed against the original document.

    Character edits replace ``delete_length`` characters starting at
    ``(line, column)`` with ``text``. Line edits replace ``delete_count``
    whole lines starting at ``line`` with the lines of ``text``.
    Use the ``replace_chars`` and ``replace_lines`` constructors.
    """

    kind: EditKind
    line: int
    text: str = ""
    column: int | None = None
    delete_length: int = 0
    delete_count: int = 0

    def __post_init__(self) -> None:
        if self.kind is EditKind.CHARACTERS:
            if self.column is None:
                raise ValueError("Character edits require a column.")
            if self.delete_count:
                raise ValueError("Character edits cannot delete whole lines.")
        elif self.column is not None or self.delete_length:
            raise ValueError("Line edits take neither a column nor a delete length.")

    @classmethod
    def replace_chars(
        cls, line: int, column: int, delete_length: int = 0, text: str = ""
    ) -> "Edit":
        return cls(
            kind=EditKind.CHARACTERS,
            line=line,
            column=column,
            delete_length=delete_length,
            text=text,
        )

    @classmethod
    def replace_lines(cls, line: int, delete_count: int = 0, text: str = "") -> "Edit":
        return cls(kind=EditKind.LINES, line=line, delete_count=delete_count, text=text)

    @property
    def is_line_edit(self) -> bool:
        return self.kind is EditKind.LINES

    def inserted_lines(self) -> list[str]:
        """Return the lines a line edit inserts (empty text inserts nothing)."""
        if not self.text:
            return []
        body = self.text[:-1] if self.text.endswith("\n") else self.text
        return body.split("\n")

    def to_dict(self) -> dict[str, Any]:
        if self.is_line_edit:
            return {
                "kind": self.kind.value,
                "line": self.line,
                "delete_count": self.delete_count,
                "text": self.text,
            }
        return {
            "kind": self.kind.value,
            "line": self.line,
            "column": self.column,
            "delete_length": self.delete_length,
            "text": self.text,
        }


@dataclass(frozen=True, slots=True)
class Finding:
    """A reported issue located in the original document."""

    rule_ids: tuple[str, ...]
    message: str
    line: int
    column: int | None = None
    length: int | None = None
    range: Range | None = None
    detail: str | None = None
    context: str | None = None
    edit: Edit | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.rule_ids, tuple):
            object.__setattr__(self, "rule_ids", tuple(self.rule_ids))
        if self.line < 1:
            raise ValueError(f"Finding line must be >= 1, got {self.line}.")
        if self.column is not None and self.column < 1:
            raise ValueError(f"Finding column must be >= 1, got {self.column}.")
        if self.length is not None and self.length < 0:
            raise ValueError(f"Finding length must be >= 0, got {self.length}.")

    @property
    def primary_id(self) -> str:
        return self.rule_ids[0] if self.rule_ids else "unknown-rule"

    @property
    def fixable(self) -> bool:
        return self.edit is not None

    def without_edit(self) -> "Finding":
        return replace(self, edit=None)

    def location(self) -> str:
        if self.column is not None:
            return f"{self.line}:{self.column}"
        return str(self.line)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_ids": list(self.rule_ids),
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "length": self.length,
            "range": self.range.to_dict() if self.range else None,
            "detail": self.detail,
            "context": self.context,
            "edit": self.edit.to_dict() if self.edit else None,
        }


@dataclass(slots=True)
class Document:
    """Represents an input document."""

    source_id: str
    text: str


@dataclass(frozen=True, slots=True)
class TextLayout:
    """Line split of a document plus what is needed to join it back."""

    lines: tuple[str, ...]
    newline: str = "\n"
    final_newline: bool = True

    def join(self, lines: Sequence[str]) -> str:
        if not lines:
            return ""
        text = self.newline.join(lines)
        if self.final_newline:
            text += self.newline
        return text


def split_text(text: str) -> TextLayout:
    """Split raw text into lines, remembering the newline style."""
    if not text:
        return TextLayout(lines=(), final_newline=False)
    newline = "\r\n" if "\r\n" in text else "\n"
    final_newline = text.endswith("\n")
    body = text[:-1] if final_newline else text
    lines = tuple(line.rstrip("\r") for line in body.split("\n"))
    return TextLayout(lines=lines, newline=newline, final_newline=final_newline)


@dataclass(frozen=True, slots=True)
class DocumentView:
    """Immutable snapshot of one document handed to a check."""

    source_id: str
    lines: tuple[str, ...]
    tokens: "TokenTree"
    config: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))
        if not isinstance(self.config, MappingProxyType):
            object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line(self, number: int) -> str:
        """Return the text of a 1-based line number."""
        if not 1 <= number <= len(self.lines):
            raise IndexError(f"Line {number} is outside 1..{len(self.lines)}.")
        return self.lines[number - 1]

    def option(self, name: str, default: Any = None) -> Any:
        return self.config.get(name, default)

    def with_config(self, config: Mapping[str, Any]) -> "DocumentView":
        """Return a view sharing lines and tokens but scoped to another config."""
        return replace(self, config=MappingProxyType(dict(config)))

    @property
    def content_start(self) -> int:
        """First 1-based line that is not part of front matter."""
        return self.tokens.front_matter_end + 1

    def numbered_lines(self) -> list[tuple[int, str]]:
        """Return ``(line_number, text)`` pairs after any front matter."""
        start = self.content_start
        return [
            (number, text)
            for number, text in enumerate(self.lines, start=1)
            if number >= start
        ]
