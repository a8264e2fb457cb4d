"""Lightweight line-based markdown block parser.

Builds the structural :class:`~mdcheck.tokens.TokenTree` handed to checks.
It recognises the block constructs checks care about and makes no claim of
CommonMark conformance; checks that need robustness re-derive simple
structure from ``lines`` as well.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Sequence, Tuple

from .models import Position, split_text
from .tokens import Token, TokenKind, TokenTree

ATX_RE = re.compile(r"^( {0,3})(#{1,6})(?=[ \t]|$)(.*)$")
ATX_CLOSING_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
THEMATIC_BREAK_RE = re.compile(
    r"^ {0,3}(?:(?:-[ \t]*){3,}|(?:\*[ \t]*){3,}|(?:_[ \t]*){3,})$"
)
SETEXT_UNDERLINE_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
BLOCK_QUOTE_RE = re.compile(r"^( {0,3})>[ ]?")
LIST_ITEM_RE = re.compile(r"^([ \t]*)([-*+]|\d{1,9}[.)])([ \t]+|$)")
HTML_BLOCK_RE = re.compile(
    r"^ {0,3}(?:<!--|<\?|<![A-Za-z]|</?[A-Za-z][A-Za-z0-9-]*(?:[\s/>]|$))"
)
HTML_INLINE_RE = re.compile(
    r"<!--.*?-->|</?[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>"
)
TABLE_DELIMITER_RE = re.compile(
    r"^ {0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$"
)
FRONT_MATTER_FENCE = "---"

_Result = Optional[Tuple[Token, int]]


def parse(text: str, front_matter: bool = True) -> TokenTree:
    """Parse raw markdown text into a token tree."""
    return parse_lines(split_text(text).lines, front_matter=front_matter)


def parse_lines(lines: Sequence[str], front_matter: bool = True) -> TokenTree:
    """Parse an already split line sequence into a token tree.

    With ``front_matter`` a leading ``---`` block becomes a single
    front-matter token instead of being parsed as markdown.
    """
    lines = list(lines)
    children: list[Token] = []
    body_start = 0
    header = _front_matter(lines) if front_matter else None
    if header is not None:
        children.append(header)
        body_start = header.end_line
    children.extend(_BlockParser(lines[body_start:], line_offset=body_start).parse())
    if lines:
        end = Position(len(lines), len(lines[-1]) + 1)
    else:
        end = Position(1, 1)
    root = Token(
        kind=TokenKind.DOCUMENT,
        text="\n".join(lines),
        start=Position(1, 1),
        end=end,
        children=tuple(children),
    )
    return TokenTree(root, len(lines))


def indent_width(line: str) -> int:
    """Column width of leading whitespace, expanding tabs to multiples of four."""
    width = 0
    for char in line:
        if char == " ":
            width += 1
        elif char == "\t":
            width += 4 - width % 4
        else:
            break
    return width


def strip_indent(line: str, width: int) -> str:
    """Remove up to ``width`` columns of leading whitespace."""
    consumed = 0
    idx = 0
    while idx < len(line) and consumed < width and line[idx] in " \t":
        consumed += 1 if line[idx] == " " else 4 - consumed % 4
        idx += 1
    return line[idx:]


def is_blank(line: str) -> bool:
    return not line.strip()


def _front_matter(lines: list[str]) -> Token | None:
    if not lines or lines[0].rstrip() != FRONT_MATTER_FENCE:
        return None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() in (FRONT_MATTER_FENCE, "..."):
            return Token(
                kind=TokenKind.FRONT_MATTER,
                text="\n".join(lines[: idx + 1]),
                start=Position(1, 1),
                end=Position(idx + 1, len(lines[idx]) + 1),
            )
    return None


class _BlockParser:
    """Parses one container's worth of lines (document, quote or list item)."""

    def __init__(
        self, lines: Sequence[str], line_offset: int = 0, column_offset: int = 0
    ) -> None:
        self.lines = list(lines)
        self.line_offset = line_offset
        self.column_offset = column_offset

    def parse(self) -> list[Token]:
        handlers: list[Callable[[int], _Result]] = [
            self._fenced_code,
            self._atx_heading,
            self._thematic_break,
            self._block_quote,
            self._indented_code,
            self._list,
            self._html_block,
            self._table,
            self._paragraph,
        ]
        tokens: list[Token] = []
        idx = 0
        while idx < len(self.lines):
            if is_blank(self.lines[idx]):
                idx += 1
                continue
            for handler in handlers:
                result = handler(idx)
                if result is not None:
                    token, idx = result
                    tokens.append(token)
                    break
            else:  # pragma: no cover - paragraph always matches
                idx += 1
        return tokens

    def _token(
        self,
        kind: TokenKind,
        first: int,
        last: int,
        *,
        column: int = 1,
        children: Sequence[Token] = (),
        **properties: object,
    ) -> Token:
        return Token(
            kind=kind,
            text="\n".join(self.lines[first : last + 1]),
            start=Position(self.line_offset + first + 1, self.column_offset + column),
            end=Position(
                self.line_offset + last + 1,
                self.column_offset + len(self.lines[last]) + 1,
            ),
            children=tuple(children),
            properties=properties,
        )

    def _starts_block(self, line: str) -> bool:
        """Whether ``line`` interrupts a paragraph."""
        if ATX_RE.match(line) or FENCE_OPEN_RE.match(line):
            return True
        if THEMATIC_BREAK_RE.match(line) or BLOCK_QUOTE_RE.match(line):
            return True
        if HTML_BLOCK_RE.match(line):
            return True
        match = LIST_ITEM_RE.match(line)
        return bool(match and indent_width(match.group(1)) <= 3 and match.group(3))

    def _fenced_code(self, idx: int) -> _Result:
        match = FENCE_OPEN_RE.match(self.lines[idx])
        if not match:
            return None
        fence = match.group(2)
        info = match.group(3).strip()
        if fence[0] == "`" and "`" in info:
            return None
        closing = re.compile(
            r"^ {0,3}" + re.escape(fence[0]) + "{" + str(len(fence)) + r",}[ \t]*$"
        )
        last = len(self.lines) - 1
        closed = False
        for end in range(idx + 1, len(self.lines)):
            if closing.match(self.lines[end]):
                last = end
                closed = True
                break
        token = self._token(
            TokenKind.CODE_FENCED,
            idx,
            last,
            column=len(match.group(1)) + 1,
            fence=fence,
            fence_char=fence[0],
            fence_length=len(fence),
            info=info,
            language=info.split()[0] if info else "",
            closed=closed,
        )
        return token, last + 1

    def _atx_heading(self, idx: int) -> _Result:
        match = ATX_RE.match(self.lines[idx])
        if not match:
            return None
        content = match.group(3).strip()
        closed = False
        closing = ATX_CLOSING_RE.search(content)
        if closing and content:
            closed = True
            content = content[: closing.start()].strip()
        token = self._token(
            TokenKind.ATX_HEADING,
            idx,
            idx,
            column=len(match.group(1)) + 1,
            level=len(match.group(2)),
            closed=closed,
            content=content,
        )
        return token, idx + 1

    def _thematic_break(self, idx: int) -> _Result:
        line = self.lines[idx]
        if not THEMATIC_BREAK_RE.match(line):
            return None
        stripped = line.strip()
        token = self._token(
            TokenKind.THEMATIC_BREAK,
            idx,
            idx,
            column=indent_width(line) + 1,
            marker=stripped[0],
        )
        return token, idx + 1

    def _block_quote(self, idx: int) -> _Result:
        first = BLOCK_QUOTE_RE.match(self.lines[idx])
        if not first:
            return None
        inner: list[str] = []
        end = idx
        while end < len(self.lines):
            match = BLOCK_QUOTE_RE.match(self.lines[end])
            if not match:
                break
            inner.append(self.lines[end][match.end() :])
            end += 1
        children = _BlockParser(
            inner,
            line_offset=self.line_offset + idx,
            column_offset=self.column_offset + first.end(),
        ).parse()
        token = self._token(
            TokenKind.BLOCK_QUOTE,
            idx,
            end - 1,
            column=len(first.group(1)) + 1,
            children=children,
        )
        return token, end

    def _indented_code(self, idx: int) -> _Result:
        if indent_width(self.lines[idx]) < 4:
            return None
        end = idx
        last = idx
        while end < len(self.lines):
            line = self.lines[end]
            if is_blank(line):
                end += 1
                continue
            if indent_width(line) < 4:
                break
            last = end
            end += 1
        token = self._token(TokenKind.CODE_INDENTED, idx, last, column=5)
        return token, last + 1

    def _list(self, idx: int) -> _Result:
        match = LIST_ITEM_RE.match(self.lines[idx])
        if not match or indent_width(match.group(1)) > 3:
            return None
        ordered = match.group(2)[0].isdigit()
        delimiter = match.group(2)[-1]
        items: list[Token] = []
        start = idx
        while True:
            item, next_idx = self._list_item(idx)
            items.append(item)
            following = next_idx
            while following < len(self.lines) and is_blank(self.lines[following]):
                following += 1
            if following >= len(self.lines):
                break
            sibling = LIST_ITEM_RE.match(self.lines[following])
            if (
                sibling is None
                or indent_width(sibling.group(1)) > 3
                or sibling.group(2)[0].isdigit() != ordered
                or sibling.group(2)[-1] != delimiter
            ):
                break
            idx = following
        last = items[-1].end_line - self.line_offset - 1
        token = self._token(
            TokenKind.LIST,
            start,
            last,
            column=indent_width(match.group(1)) + 1,
            children=items,
            ordered=ordered,
            marker=match.group(2) if not ordered else delimiter,
        )
        return token, last + 1

    def _list_item(self, idx: int) -> tuple[Token, int]:
        line = self.lines[idx]
        match = LIST_ITEM_RE.match(line)
        assert match is not None
        indent = indent_width(match.group(1))
        marker = match.group(2)
        spacing = indent_width(match.group(1) + match.group(3)) - indent
        if not match.group(3) or spacing > 4:
            content_offset = indent + len(marker) + 1
        else:
            content_offset = indent + len(marker) + spacing
        body = [line[match.end() :]]
        end = idx + 1
        while end < len(self.lines):
            current = self.lines[end]
            if is_blank(current):
                ahead = end + 1
                while ahead < len(self.lines) and is_blank(self.lines[ahead]):
                    ahead += 1
                if ahead < len(self.lines) and indent_width(self.lines[ahead]) >= content_offset:
                    body.extend("" for _ in range(end, ahead))
                    end = ahead
                    continue
                break
            if indent_width(current) >= content_offset:
                body.append(strip_indent(current, content_offset))
                end += 1
                continue
            if not is_blank(self.lines[end - 1]) and not self._starts_block(current):
                body.append(current.lstrip())
                end += 1
                continue
            break
        children = _BlockParser(
            body,
            line_offset=self.line_offset + idx,
            column_offset=self.column_offset + content_offset,
        ).parse()
        properties: dict[str, object] = {
            "marker": marker,
            "ordered": marker[0].isdigit(),
            "indent": indent,
            "content_offset": content_offset,
        }
        if marker[0].isdigit():
            properties["number"] = int(marker[:-1])
        token = self._token(
            TokenKind.LIST_ITEM,
            idx,
            end - 1,
            column=indent + 1,
            children=children,
            **properties,
        )
        return token, end

    def _html_block(self, idx: int) -> _Result:
        line = self.lines[idx]
        if not HTML_BLOCK_RE.match(line):
            return None
        end = idx
        if line.lstrip().startswith("<!--"):
            while end < len(self.lines) - 1 and "-->" not in self.lines[end]:
                end += 1
        else:
            while end + 1 < len(self.lines) and not is_blank(self.lines[end + 1]):
                end += 1
        token = self._token(
            TokenKind.HTML_FLOW, idx, end, column=indent_width(line) + 1
        )
        return token, end + 1

    def _table(self, idx: int) -> _Result:
        if idx + 1 >= len(self.lines):
            return None
        header, delimiter = self.lines[idx], self.lines[idx + 1]
        if "|" not in header or "|" not in delimiter:
            return None
        if not TABLE_DELIMITER_RE.match(delimiter):
            return None
        end = idx + 2
        while end < len(self.lines):
            current = self.lines[end]
            if is_blank(current) or "|" not in current or self._starts_block(current):
                break
            end += 1
        rows = [
            self._token(
                TokenKind.TABLE_ROW,
                row,
                row,
                column=indent_width(self.lines[row]) + 1,
                header=row == idx,
                delimiter=row == idx + 1,
            )
            for row in range(idx, end)
        ]
        token = self._token(TokenKind.TABLE, idx, end - 1, children=rows)
        return token, end

    def _paragraph(self, idx: int) -> _Result:
        end = idx + 1
        while end < len(self.lines):
            current = self.lines[end]
            if is_blank(current):
                break
            underline = SETEXT_UNDERLINE_RE.match(current)
            if underline:
                level = 1 if underline.group(1)[0] == "=" else 2
                token = self._token(
                    TokenKind.SETEXT_HEADING,
                    idx,
                    end,
                    column=indent_width(self.lines[idx]) + 1,
                    level=level,
                    content=" ".join(l.strip() for l in self.lines[idx:end]),
                )
                return token, end + 1
            if self._starts_block(current):
                break
            end += 1
        token = self._token(
            TokenKind.PARAGRAPH,
            idx,
            end - 1,
            column=indent_width(self.lines[idx]) + 1,
            children=self._inline_html(idx, end - 1),
        )
        return token, end

    def _inline_html(self, first: int, last: int) -> list[Token]:
        found: list[Token] = []
        for row in range(first, last + 1):
            line = self.lines[row]
            for match in HTML_INLINE_RE.finditer(line):
                line_no = self.line_offset + row + 1
                found.append(
                    Token(
                        kind=TokenKind.HTML_TEXT,
                        text=match.group(0),
                        start=Position(line_no, self.column_offset + match.start() + 1),
                        end=Position(line_no, self.column_offset + match.end() + 1),
                    )
                )
        return found
