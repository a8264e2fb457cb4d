from __future__ import annotations

import re
from types import MappingProxyType

from ..models import DocumentView, Edit, Finding
from ..parser import strip_indent
from ..tokens import Token, TokenKind
from .base import (
    DOCS_URL,
    Check,
    CheckResult,
    CodeBlockStyle,
    FenceStyle,
    parse_style,
)

FENCE_NAMES = {"`": FenceStyle.BACKTICK, "~": FenceStyle.TILDE}


def _block_lines(view: DocumentView, token: Token) -> list[str]:
    return list(view.lines[token.start_line - 1 : token.end_line])


class BlanksAroundFences(Check):
    names = ("MD031", "blanks-around-fences")
    description = "Fenced code blocks should be surrounded by blank lines"
    tags = ("code", "blank_lines")
    default_config = MappingProxyType({"list_items": True})
    information = DOCS_URL.format(rule="md031")

    def run(self, view: DocumentView) -> CheckResult:
        list_items = bool(view.option("list_items", True))
        findings: list[Finding] = []
        for fence in view.tokens.find(TokenKind.CODE_FENCED):
            first, last = fence.start_line, fence.end_line
            if not list_items and view.tokens.nearest_ancestor(first, TokenKind.LIST_ITEM):
                continue
            fixable = view.tokens.nearest_ancestor(first, TokenKind.BLOCK_QUOTE) is None
            if first > view.content_start and view.line(first - 1).strip():
                findings.append(
                    self.finding(
                        first,
                        detail="Expected blank line above",
                        context=view.line(first).strip(),
                        edit=Edit.replace_lines(first, 0, "\n") if fixable else None,
                    )
                )
            if fence.get("closed") and last < view.line_count and view.line(last + 1).strip():
                findings.append(
                    self.finding(
                        last,
                        detail="Expected blank line below",
                        context=view.line(last).strip(),
                        edit=Edit.replace_lines(last + 1, 0, "\n") if fixable else None,
                    )
                )
        return findings


class FencedCodeLanguage(Check):
    names = ("MD040", "fenced-code-language")
    description = "Fenced code blocks should have a language specified"
    tags = ("code", "language")
    default_config = MappingProxyType({"allowed_languages": (), "language_only": False})
    information = DOCS_URL.format(rule="md040")

    def run(self, view: DocumentView) -> CheckResult:
        allowed = {str(lang).lower() for lang in view.option("allowed_languages", ())}
        language_only = bool(view.option("language_only", False))
        findings: list[Finding] = []
        for fence in view.tokens.find(TokenKind.CODE_FENCED):
            language = str(fence.get("language", ""))
            info = str(fence.get("info", ""))
            detail = None
            if not language:
                detail = "Missing language"
            elif allowed and language.lower() not in allowed:
                detail = f"Language {language!r} is not allowed"
            elif language_only and info != language:
                detail = "Info string contains more than the language"
            else:
                continue
            findings.append(
                self.finding(
                    fence.start_line,
                    detail=detail,
                    context=view.line(fence.start_line).strip(),
                )
            )
        return findings


class CodeBlockStyleCheck(Check):
    names = ("MD046", "code-block-style")
    description = "Code block style"
    tags = ("code",)
    default_config = MappingProxyType({"style": CodeBlockStyle.CONSISTENT.value})
    information = DOCS_URL.format(rule="md046")

    def run(self, view: DocumentView) -> CheckResult:
        style = parse_style(CodeBlockStyle, view.option("style", "consistent"))
        expected = None if style is CodeBlockStyle.CONSISTENT else style
        findings: list[Finding] = []
        for block in view.tokens.code_blocks():
            actual = (
                CodeBlockStyle.FENCED
                if block.kind is TokenKind.CODE_FENCED
                else CodeBlockStyle.INDENTED
            )
            if expected is None:
                expected = actual
                continue
            if actual is expected:
                continue
            findings.append(
                self.finding(
                    block.start_line,
                    detail=f"Expected: {expected.value}; Actual: {actual.value}",
                    edit=self._convert(view, block, expected),
                )
            )
        return findings

    def _convert(
        self, view: DocumentView, block: Token, target: CodeBlockStyle
    ) -> Edit | None:
        if len(view.tokens.path_at(block.start_line)) != 1:
            return None
        lines = _block_lines(view, block)
        count = len(lines)
        if target is CodeBlockStyle.FENCED:
            body = [strip_indent(line, 4) for line in lines]
            fence = "~~~" if any(line.lstrip().startswith("```") for line in body) else "```"
            return Edit.replace_lines(block.start_line, count, "\n".join([fence, *body, fence]))

        if not block.get("closed") or count < 3:
            return None
        if block.start_line > view.content_start and view.line(block.start_line - 1).strip():
            return None
        indent = block.start.column - 1
        body = [
            "    " + strip_indent(line, indent) if line.strip() else ""
            for line in lines[1:-1]
        ]
        if not any(body):
            return None
        return Edit.replace_lines(block.start_line, count, "\n".join(body))


class CodeFenceStyle(Check):
    names = ("MD048", "code-fence-style")
    description = "Code fence style"
    tags = ("code",)
    default_config = MappingProxyType({"style": FenceStyle.CONSISTENT.value})
    information = DOCS_URL.format(rule="md048")

    def run(self, view: DocumentView) -> CheckResult:
        style = parse_style(FenceStyle, view.option("style", "consistent"))
        expected = None if style is FenceStyle.CONSISTENT else style.char
        findings: list[Finding] = []
        for fence in view.tokens.find(TokenKind.CODE_FENCED):
            char = str(fence.get("fence_char"))
            if expected is None:
                expected = char
                continue
            if char == expected:
                continue
            findings.append(
                self.finding(
                    fence.start_line,
                    detail=(
                        f"Expected: {FENCE_NAMES[expected].value}; "
                        f"Actual: {FENCE_NAMES[char].value}"
                    ),
                    context=view.line(fence.start_line).strip(),
                    edit=self._rewrite(view, fence, expected),
                )
            )
        return findings

    @staticmethod
    def _rewrite(view: DocumentView, fence: Token, char: str) -> Edit | None:
        if not fence.get("closed"):
            return None
        if char == "`" and "`" in str(fence.get("info", "")):
            return None
        lines = _block_lines(view, fence)
        if any(line.lstrip().startswith(char * 3) for line in lines[1:-1]):
            return None
        length = int(fence.get("fence_length", 3))
        column = fence.start.column
        opening = lines[0]
        lines[0] = opening[: column - 1] + char * length + opening[column - 1 + length :]
        closing = re.search(re.escape(str(fence.get("fence_char"))) + "{3,}", lines[-1])
        if closing is None:
            return None
        lines[-1] = (
            lines[-1][: closing.start()]
            + char * len(closing.group(0))
            + lines[-1][closing.end() :]
        )
        return Edit.replace_lines(fence.start_line, len(lines), "\n".join(lines))
