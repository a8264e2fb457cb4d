from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .models import Position


class TokenKind(Enum):
    """Block-level structure recognised by the parser."""

    DOCUMENT = "document"
    FRONT_MATTER = "front-matter"
    PARAGRAPH = "paragraph"
    ATX_HEADING = "atx-heading"
    SETEXT_HEADING = "setext-heading"
    LIST = "list"
    LIST_ITEM = "list-item"
    CODE_FENCED = "code-fenced"
    CODE_INDENTED = "code-indented"
    BLOCK_QUOTE = "block-quote"
    TABLE = "table"
    TABLE_ROW = "table-row"
    HTML_FLOW = "html-flow"
    HTML_TEXT = "html-text"
    THEMATIC_BREAK = "thematic-break"


HEADING_KINDS = frozenset({TokenKind.ATX_HEADING, TokenKind.SETEXT_HEADING})
CODE_BLOCK_KINDS = frozenset({TokenKind.CODE_FENCED, TokenKind.CODE_INDENTED})
HTML_KINDS = frozenset({TokenKind.HTML_FLOW, TokenKind.HTML_TEXT})


@dataclass(frozen=True, slots=True)
class Token:
    """A node of the structural tree. Each token owns its children."""

    kind: TokenKind
    text: str
    start: Position
    end: Position
    children: tuple["Token", ...] = ()
    properties: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def start_line(self) -> int:
        return self.start.line

    @property
    def end_line(self) -> int:
        return self.end.line

    def contains_line(self, line: int) -> bool:
        return self.start.line <= line <= self.end.line

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def is_heading(self) -> bool:
        return self.kind in HEADING_KINDS

    def is_code_block(self) -> bool:
        return self.kind in CODE_BLOCK_KINDS

    def is_list_item(self) -> bool:
        return self.kind is TokenKind.LIST_ITEM

    def is_block_quote(self) -> bool:
        return self.kind is TokenKind.BLOCK_QUOTE

    def is_html(self) -> bool:
        return self.kind in HTML_KINDS

    def is_table_row(self) -> bool:
        return self.kind is TokenKind.TABLE_ROW

    @property
    def level(self) -> int:
        """Heading level, 0 for non-heading tokens."""
        return int(self.get("level", 0)) if self.is_heading() else 0

    def walk(self) -> Iterator["Token"]:
        """Yield this token and its descendants in document order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        preview = self.text if len(self.text) <= 24 else self.text[:21] + "..."
        return (
            f"Token({self.kind.value}, {self.start.line}:{self.start.column}"
            f"-{self.end.line}:{self.end.column}, {preview!r})"
        )


class TokenTree:
    """Read-only index over a parsed document.

    The ``line -> path`` table is computed once so that containment and
    "nearest ancestor" queries never need parent pointers.
    """

    def __init__(self, root: Token, line_count: int) -> None:
        self._root = root
        self._line_count = line_count
        paths: list[tuple[Token, ...]] = [() for _ in range(line_count)]
        self._index_paths(root.children, (), paths)
        self._paths = tuple(paths)
        front_matter = [t for t in root.children if t.kind is TokenKind.FRONT_MATTER]
        self._front_matter_end = front_matter[0].end_line if front_matter else 0

    def _index_paths(
        self,
        tokens: tuple[Token, ...],
        prefix: tuple[Token, ...],
        paths: list[tuple[Token, ...]],
    ) -> None:
        for token in tokens:
            path = prefix + (token,)
            first = max(1, token.start_line)
            last = min(self._line_count, token.end_line)
            for line in range(first, last + 1):
                paths[line - 1] = path
            if token.children:
                self._index_paths(token.children, path, paths)

    @property
    def root(self) -> Token:
        return self._root

    @property
    def line_count(self) -> int:
        return self._line_count

    @property
    def front_matter_end(self) -> int:
        """Last line of leading front matter, 0 when there is none."""
        return self._front_matter_end

    def walk(self) -> Iterator[Token]:
        """Yield every token below the document root in document order."""
        for child in self._root.children:
            yield from child.walk()

    def find(self, *kinds: TokenKind) -> list[Token]:
        wanted = set(kinds)
        return [token for token in self.walk() if token.kind in wanted]

    def headings(self) -> list[Token]:
        return [token for token in self.walk() if token.is_heading()]

    def code_blocks(self) -> list[Token]:
        return [token for token in self.walk() if token.is_code_block()]

    def path_at(self, line: int) -> tuple[Token, ...]:
        """Tokens containing ``line`` from outermost to innermost."""
        if not 1 <= line <= self._line_count:
            return ()
        return self._paths[line - 1]

    def innermost_at(self, line: int) -> Token | None:
        path = self.path_at(line)
        return path[-1] if path else None

    def nearest_ancestor(self, line: int, *kinds: TokenKind) -> Token | None:
        """Innermost token of one of ``kinds`` that contains ``line``."""
        wanted = set(kinds)
        for token in reversed(self.path_at(line)):
            if token.kind in wanted:
                return token
        return None

    def in_code_block(self, line: int) -> bool:
        return any(token.is_code_block() for token in self.path_at(line))

    def in_front_matter(self, line: int) -> bool:
        return 1 <= line <= self._front_matter_end
