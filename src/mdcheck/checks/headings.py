from __future__ import annotations

import re
from types import MappingProxyType

from ..models import DocumentView, Edit, Finding
from ..tokens import Token, TokenKind
from .base import DOCS_URL, Check, CheckResult, HeadingStyle, parse_style

MISSING_SPACE_RE = re.compile(r"^( {0,3})(#{1,6})([^#\s])")
HASH_SPACING_RE = re.compile(r"(#{1,6})([ \t]{2,})\S")
HTML_ENTITY_RE = re.compile(r"&(?:[A-Za-z0-9]+|#[0-9]+|#x[0-9A-Fa-f]+);$")


def heading_style(token: Token) -> HeadingStyle:
    if token.kind is TokenKind.SETEXT_HEADING:
        return HeadingStyle.SETEXT
    if token.get("closed"):
        return HeadingStyle.ATX_CLOSED
    return HeadingStyle.ATX


def _is_blank(view: DocumentView, line: int) -> bool:
    return not view.line(line).strip()


class HeadingIncrement(Check):
    names = ("MD001", "heading-increment")
    description = "Heading levels should only increment by one level at a time"
    tags = ("headings",)
    information = DOCS_URL.format(rule="md001")

    def run(self, view: DocumentView) -> CheckResult:
        findings: list[Finding] = []
        previous = 0
        for heading in view.tokens.headings():
            level = heading.level
            if previous and level > previous + 1:
                expected = previous + 1
                findings.append(
                    self.finding(
                        heading.start_line,
                        detail=f"Expected: h{expected}; Actual: h{level}",
                        context=view.line(heading.start_line).strip(),
                        edit=self._fix(view, heading, expected),
                    )
                )
            previous = level
        return findings

    @staticmethod
    def _fix(view: DocumentView, heading: Token, expected: int) -> Edit | None:
        if heading.kind is not TokenKind.ATX_HEADING:
            return None
        column = heading.start.column
        text = view.line(heading.start_line)
        if text[column - 1 : column - 1 + heading.level] != "#" * heading.level:
            return None
        return Edit.replace_chars(heading.start_line, column, heading.level, "#" * expected)


class HeadingStyleCheck(Check):
    names = ("MD003", "heading-style")
    description = "Heading style"
    tags = ("headings",)
    default_config = MappingProxyType({"style": HeadingStyle.CONSISTENT.value})
    information = DOCS_URL.format(rule="md003")

    def run(self, view: DocumentView) -> CheckResult:
        style = parse_style(HeadingStyle, view.option("style", "consistent"))
        findings: list[Finding] = []
        expected = style
        for heading in view.tokens.headings():
            actual = heading_style(heading)
            if expected is HeadingStyle.CONSISTENT:
                expected = actual
                continue
            wanted = self._wanted(expected, heading.level)
            if actual is not wanted and not self._tolerated(expected, actual, heading.level):
                findings.append(
                    self.finding(
                        heading.start_line,
                        detail=f"Expected: {wanted.value}; Actual: {actual.value}",
                        context=view.line(heading.start_line).strip(),
                    )
                )
        return findings

    @staticmethod
    def _wanted(style: HeadingStyle, level: int) -> HeadingStyle:
        if style is HeadingStyle.SETEXT_WITH_ATX:
            return HeadingStyle.SETEXT if level <= 2 else HeadingStyle.ATX
        if style is HeadingStyle.SETEXT_WITH_ATX_CLOSED:
            return HeadingStyle.SETEXT if level <= 2 else HeadingStyle.ATX_CLOSED
        return style

    @staticmethod
    def _tolerated(style: HeadingStyle, actual: HeadingStyle, level: int) -> bool:
        # Setext cannot express levels beyond 2.
        return style is HeadingStyle.SETEXT and level > 2 and actual is not HeadingStyle.SETEXT


class NoMissingSpaceAtx(Check):
    names = ("MD018", "no-missing-space-atx")
    description = "No space after hash on ATX style heading"
    tags = ("headings", "atx", "spaces")
    information = DOCS_URL.format(rule="md018")

    def run(self, view: DocumentView) -> CheckResult:
        findings: list[Finding] = []
        for number, text in view.numbered_lines():
            if view.tokens.in_code_block(number):
                continue
            match = MISSING_SPACE_RE.match(text)
            if not match:
                continue
            column = match.end(2) + 1
            findings.append(
                self.finding(
                    number,
                    column=1,
                    length=column - 1,
                    context=text.strip(),
                    edit=Edit.replace_chars(number, column, 0, " "),
                )
            )
        return findings


class NoMultipleSpaceAtx(Check):
    names = ("MD019", "no-multiple-space-atx")
    description = "Multiple spaces after hash on ATX style heading"
    tags = ("headings", "atx", "spaces")
    information = DOCS_URL.format(rule="md019")

    def run(self, view: DocumentView) -> CheckResult:
        findings: list[Finding] = []
        for heading in view.tokens.find(TokenKind.ATX_HEADING):
            text = view.line(heading.start_line)
            match = HASH_SPACING_RE.match(text, heading.start.column - 1)
            if not match:
                continue
            extra = len(match.group(2)) - 1
            start = match.start(2) + 2
            findings.append(
                self.finding(
                    heading.start_line,
                    column=match.start(2) + 1,
                    length=len(match.group(2)),
                    context=text.strip(),
                    edit=Edit.replace_chars(heading.start_line, start, extra),
                )
            )
        return findings


class BlanksAroundHeadings(Check):
    names = ("MD022", "blanks-around-headings")
    description = "Headings should be surrounded by blank lines"
    tags = ("headings", "blank_lines")
    default_config = MappingProxyType({"lines_above": 1, "lines_below": 1})
    information = DOCS_URL.format(rule="md022")

    def run(self, view: DocumentView) -> CheckResult:
        above = int(view.option("lines_above", 1))
        below = int(view.option("lines_below", 1))
        findings: list[Finding] = []
        insert_points: set[int] = set()
        for heading in view.tokens.headings():
            first, last = heading.start_line, heading.end_line
            fixable = view.tokens.nearest_ancestor(first, TokenKind.BLOCK_QUOTE) is None

            if first > view.content_start and above > 0:
                found = self._count_blank(view, first - 1, -1, above)
                if found < above:
                    edit = None
                    if fixable and first not in insert_points:
                        edit = Edit.replace_lines(first, 0, "\n" * (above - found))
                        insert_points.add(first)
                    findings.append(
                        self.finding(
                            first,
                            detail=f"Expected: {above}; Actual: {found}; Above",
                            context=view.line(first).strip(),
                            edit=edit,
                        )
                    )

            if last < view.line_count and below > 0:
                found = self._count_blank(view, last + 1, 1, below)
                if found < below:
                    edit = None
                    if fixable and last + 1 not in insert_points:
                        edit = Edit.replace_lines(last + 1, 0, "\n" * (below - found))
                        insert_points.add(last + 1)
                    findings.append(
                        self.finding(
                            first,
                            detail=f"Expected: {below}; Actual: {found}; Below",
                            context=view.line(first).strip(),
                            edit=edit,
                        )
                    )
        return findings

    @staticmethod
    def _count_blank(view: DocumentView, start: int, step: int, limit: int) -> int:
        count = 0
        line = start
        while count < limit and 1 <= line <= view.line_count and _is_blank(view, line):
            count += 1
            line += step
        return count


class SingleH1(Check):
    names = ("MD025", "single-h1", "single-title")
    description = "Multiple top-level headings in the same document"
    tags = ("headings",)
    default_config = MappingProxyType(
        {"level": 1, "front_matter_title": r"^\s*title\s*[:=]"}
    )
    information = DOCS_URL.format(rule="md025")

    def run(self, view: DocumentView) -> CheckResult:
        level = int(view.option("level", 1))
        pattern = view.option("front_matter_title", r"^\s*title\s*[:=]")
        titled = False
        if pattern and view.tokens.front_matter_end:
            title_re = re.compile(pattern, re.IGNORECASE)
            titled = any(
                title_re.search(view.line(number))
                for number in range(1, view.tokens.front_matter_end + 1)
            )
        tops = [h for h in view.tokens.headings() if h.level == level]
        flagged = tops if titled else tops[1:]
        return [
            self.finding(heading.start_line, context=view.line(heading.start_line).strip())
            for heading in flagged
        ]


class NoTrailingPunctuation(Check):
    names = ("MD026", "no-trailing-punctuation")
    description = "Trailing punctuation in heading"
    tags = ("headings",)
    default_config = MappingProxyType({"punctuation": ".,;:!。，；：！"})
    information = DOCS_URL.format(rule="md026")

    def run(self, view: DocumentView) -> CheckResult:
        punctuation = str(view.option("punctuation", ".,;:!。，；：！"))
        findings: list[Finding] = []
        if not punctuation:
            return findings
        for heading in view.tokens.headings():
            if heading.get("closed"):
                continue
            line = heading.start_line
            if heading.kind is TokenKind.SETEXT_HEADING:
                line = heading.end_line - 1
            text = view.line(line).rstrip()
            if HTML_ENTITY_RE.search(text):
                continue
            end = len(text)
            start = end
            while start > 0 and text[start - 1] in punctuation:
                start -= 1
            if start == end or not text[:start].strip("# \t>"):
                continue
            findings.append(
                self.finding(
                    line,
                    column=start + 1,
                    length=end - start,
                    detail=f"Punctuation: '{text[start:end]}'",
                    context=text.strip(),
                    edit=Edit.replace_chars(line, start + 1, end - start),
                )
            )
        return findings
