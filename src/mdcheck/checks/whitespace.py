from __future__ import annotations

import re
from types import MappingProxyType

from ..models import DocumentView, Edit, Finding, Position, Range
from ..tokens import TokenKind
from .base import DOCS_URL, Check, CheckResult

BLOCK_START_RE = re.compile(r"^\s*(?:#|>|[-*+]\s|\d+[.)]\s)")


class NoTrailingSpaces(Check):
    names = ("MD009", "no-trailing-spaces")
    description = "Trailing spaces"
    tags = ("whitespace",)
    default_config = MappingProxyType(
        {"br_spaces": 2, "list_item_empty_lines": False, "strict": False}
    )
    information = DOCS_URL.format(rule="md009")

    def run(self, view: DocumentView) -> CheckResult:
        br_spaces = int(view.option("br_spaces", 2))
        if br_spaces < 2:
            br_spaces = 0
        strict = bool(view.option("strict", False))
        list_item_empty_lines = bool(view.option("list_item_empty_lines", False))

        findings: list[Finding] = []
        for number, text in view.numbered_lines():
            content = text.rstrip(" ")
            trailing = len(text) - len(content)
            if not trailing or view.tokens.in_code_block(number):
                continue
            if (
                list_item_empty_lines
                and not content.strip()
                and view.tokens.nearest_ancestor(number, TokenKind.LIST_ITEM)
            ):
                continue
            if (
                br_spaces
                and trailing >= br_spaces
                and not strict
                and self._breaks_line(view, number)
            ):
                continue
            expected = f"0 or {br_spaces}" if br_spaces else "0"
            findings.append(
                self.finding(
                    number,
                    column=len(content) + 1,
                    length=trailing,
                    detail=f"Expected: {expected}; Actual: {trailing}",
                    edit=Edit.replace_chars(number, len(content) + 1, trailing),
                )
            )
        return findings

    @staticmethod
    def _breaks_line(view: DocumentView, number: int) -> bool:
        """Whether trailing spaces on ``number`` produce a hard line break."""
        if number >= view.line_count or not view.line(number).strip():
            return False
        following = view.line(number + 1)
        return bool(following.strip()) and not BLOCK_START_RE.match(following)


class NoHardTabs(Check):
    names = ("MD010", "no-hard-tabs")
    description = "Hard tabs"
    tags = ("whitespace", "hard_tab")
    default_config = MappingProxyType(
        {"code_blocks": True, "ignore_code_languages": (), "spaces_per_tab": 4}
    )
    information = DOCS_URL.format(rule="md010")

    def run(self, view: DocumentView) -> CheckResult:
        code_blocks = bool(view.option("code_blocks", True))
        ignored = {str(lang).lower() for lang in view.option("ignore_code_languages", ())}
        spaces = " " * int(view.option("spaces_per_tab", 4))

        findings: list[Finding] = []
        for number, text in view.numbered_lines():
            if "\t" not in text:
                continue
            block = view.tokens.nearest_ancestor(
                number, TokenKind.CODE_FENCED, TokenKind.CODE_INDENTED
            )
            if block is not None:
                if not code_blocks:
                    continue
                language = str(block.get("language", "")).lower()
                if language and language in ignored:
                    continue
            for index, char in enumerate(text):
                if char != "\t":
                    continue
                findings.append(
                    self.finding(
                        number,
                        column=index + 1,
                        length=1,
                        detail=f"Column: {index + 1}",
                        edit=Edit.replace_chars(number, index + 1, 1, spaces),
                    )
                )
        return findings


class NoMultipleBlanks(Check):
    names = ("MD012", "no-multiple-blanks")
    description = "Multiple consecutive blank lines"
    tags = ("whitespace", "blank_lines")
    default_config = MappingProxyType({"maximum": 1})
    information = DOCS_URL.format(rule="md012")

    def run(self, view: DocumentView) -> CheckResult:
        maximum = int(view.option("maximum", 1))
        findings: list[Finding] = []
        run_start = 0
        run_length = 0
        for number, text in view.numbered_lines() + [(view.line_count + 1, "end")]:
            if not text.strip() and not view.tokens.in_code_block(number):
                if not run_length:
                    run_start = number
                run_length += 1
                continue
            if run_length > maximum:
                excess = run_length - maximum
                findings.append(
                    self.finding(
                        run_start + maximum,
                        detail=f"Expected: {maximum}; Actual: {run_length}",
                        edit=Edit.replace_lines(run_start + maximum, excess),
                    )
                )
            run_length = 0
        return findings


class LineLength(Check):
    names = ("MD013", "line-length")
    description = "Line length"
    tags = ("line_length",)
    default_config = MappingProxyType(
        {
            "line_length": 80,
            "heading_line_length": 80,
            "code_block_line_length": 80,
            "code_blocks": True,
            "tables": True,
            "headings": True,
            "strict": False,
        }
    )
    information = DOCS_URL.format(rule="md013")

    def run(self, view: DocumentView) -> CheckResult:
        line_length = int(view.option("line_length", 80))
        heading_length = int(view.option("heading_line_length", line_length))
        code_length = int(view.option("code_block_line_length", line_length))
        strict = bool(view.option("strict", False))

        findings: list[Finding] = []
        for number, text in view.numbered_lines():
            token = view.tokens.innermost_at(number)
            limit = line_length
            if token is not None and token.is_heading():
                if not view.option("headings", True):
                    continue
                limit = heading_length
            elif view.tokens.in_code_block(number):
                if not view.option("code_blocks", True):
                    continue
                limit = code_length
            elif token is not None and token.is_table_row():
                if not view.option("tables", True):
                    continue
            if len(text) <= limit:
                continue
            # Long words such as URLs that start before the limit are allowed.
            if not strict and " " not in text[limit:].strip():
                continue
            findings.append(
                self.finding(
                    number,
                    column=limit + 1,
                    length=len(text) - limit,
                    range=Range(
                        Position(number, limit + 1), Position(number, len(text) + 1)
                    ),
                    detail=f"Expected: {limit}; Actual: {len(text)}",
                )
            )
        return findings
