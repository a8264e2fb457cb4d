from __future__ import annotations

from types import MappingProxyType

from ..models import DocumentView, Edit, Finding
from ..tokens import Token, TokenKind
from .base import DOCS_URL, Check, CheckResult, ListMarkerStyle, parse_style


def _marker_column(view: DocumentView, item: Token) -> int | None:
    """1-based column of ``item``'s marker, or None if it cannot be located."""
    marker = str(item.get("marker", ""))
    text = view.line(item.start_line)
    column = item.start.column
    if marker and text[column - 1 : column - 1 + len(marker)] == marker:
        return column
    index = text.find(marker)
    return index + 1 if marker and index >= 0 else None


class UnorderedListStyle(Check):
    names = ("MD004", "ul-style")
    description = "Unordered list style"
    tags = ("bullet", "ul")
    default_config = MappingProxyType({"style": ListMarkerStyle.CONSISTENT.value})
    information = DOCS_URL.format(rule="md004")

    def run(self, view: DocumentView) -> CheckResult:
        style = parse_style(ListMarkerStyle, view.option("style", "consistent"))
        expected = None if style is ListMarkerStyle.CONSISTENT else style.marker
        findings: list[Finding] = []
        for item in view.tokens.find(TokenKind.LIST_ITEM):
            if item.get("ordered"):
                continue
            marker = str(item.get("marker"))
            if expected is None:
                expected = marker
                continue
            if marker == expected:
                continue
            column = _marker_column(view, item)
            edit = None
            if column is not None:
                edit = Edit.replace_chars(item.start_line, column, 1, expected)
            findings.append(
                self.finding(
                    item.start_line,
                    column=column,
                    length=1,
                    detail=f"Expected: {expected}; Actual: {marker}",
                    context=view.line(item.start_line).strip(),
                    edit=edit,
                )
            )
        return findings


class ListMarkerSpace(Check):
    names = ("MD030", "list-marker-space")
    description = "Spaces after list markers"
    tags = ("ol", "ul", "whitespace")
    default_config = MappingProxyType(
        {"ul_single": 1, "ol_single": 1, "ul_multi": 1, "ol_multi": 1}
    )
    information = DOCS_URL.format(rule="md030")

    def run(self, view: DocumentView) -> CheckResult:
        findings: list[Finding] = []
        for block in view.tokens.find(TokenKind.LIST):
            ordered = bool(block.get("ordered"))
            multi = any(len(item.children) > 1 for item in block.children)
            key = ("ol_" if ordered else "ul_") + ("multi" if multi else "single")
            expected = int(view.option(key, 1))
            for item in block.children:
                finding = self._check_item(view, item, expected)
                if finding is not None:
                    findings.append(finding)
        return findings

    def _check_item(self, view: DocumentView, item: Token, expected: int) -> Finding | None:
        column = _marker_column(view, item)
        if column is None:
            return None
        text = view.line(item.start_line)
        after = column - 1 + len(str(item.get("marker")))
        rest = text[after:]
        spacing = len(rest) - len(rest.lstrip(" \t"))
        if not rest.strip() or (spacing == expected and rest[:spacing] == " " * spacing):
            return None
        return self.finding(
            item.start_line,
            column=after + 1,
            length=spacing,
            detail=f"Expected: {expected}; Actual: {spacing}",
            context=text.strip(),
            edit=Edit.replace_chars(item.start_line, after + 1, spacing, " " * expected),
        )
