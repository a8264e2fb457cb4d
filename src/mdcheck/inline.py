"""Inline configuration comments.

Supported forms (the ``markdownlint-`` prefix is accepted too)::

    <!-- mdcheck-disable MD001 no-hard-tabs -->
    <!-- mdcheck-enable -->
    <!-- mdcheck-disable-line MD009 -->
    <!-- mdcheck-disable-next-line -->
    <!-- mdcheck-disable-file MD013 -->
    <!-- mdcheck-enable-file MD013 -->

A directive without rule names applies to every rule.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import Finding
from .registry import CheckRegistry
from .tokens import TokenTree

logger = logging.getLogger(__name__)

DIRECTIVE_RE = re.compile(
    r"<!--\s*(?:mdcheck|markdownlint)-"
    r"(disable-next-line|disable-line|disable-file|enable-file|disable|enable)"
    r"(?=[\s-])(.*?)-->"
)
FILE_ACTIONS = frozenset({"disable-file", "enable-file"})


@dataclass(frozen=True, slots=True)
class Directive:
    action: str
    rules: tuple[str, ...]
    line: int


def parse_directives(
    lines: Sequence[str], tokens: TokenTree | None = None
) -> list[Directive]:
    """Collect directives in document order, ignoring any inside code blocks."""
    found: list[Directive] = []
    for number, text in enumerate(lines, start=1):
        if "<!--" not in text:
            continue
        if tokens is not None and tokens.in_code_block(number):
            continue
        for match in DIRECTIVE_RE.finditer(text):
            rules = tuple(match.group(2).split())
            found.append(Directive(action=match.group(1), rules=rules, line=number))
    return found


class InlineConfig:
    """Per-line rule suppression derived from inline directives."""

    def __init__(
        self, directives: Iterable[Directive], registry: CheckRegistry, line_count: int
    ) -> None:
        self.directives = list(directives)
        self._registry = registry
        self._all = frozenset(check.primary_id for check in registry)
        self._file_disabled = self._fold_file_directives()
        self._disabled_at = self._fold_line_directives(line_count)

    @classmethod
    def from_lines(
        cls,
        lines: Sequence[str],
        registry: CheckRegistry,
        tokens: TokenTree | None = None,
    ) -> "InlineConfig":
        return cls(parse_directives(lines, tokens), registry, len(lines))

    def _targets(self, directive: Directive) -> frozenset[str]:
        if not directive.rules:
            return self._all
        unknown = [name for name in directive.rules if not self._registry.lookup(name)]
        if unknown:
            logger.debug(
                "Ignoring unknown rules %s in directive on line %d", unknown, directive.line
            )
        return frozenset(self._registry.primary_ids(directive.rules))

    def _fold_file_directives(self) -> frozenset[str]:
        disabled: set[str] = set()
        for directive in self.directives:
            if directive.action == "disable-file":
                disabled |= self._targets(directive)
            elif directive.action == "enable-file":
                disabled -= self._targets(directive)
        return frozenset(disabled)

    def _fold_line_directives(self, line_count: int) -> list[frozenset[str]]:
        by_line: dict[int, list[Directive]] = {}
        for directive in self.directives:
            if directive.action not in FILE_ACTIONS:
                by_line.setdefault(directive.line, []).append(directive)

        states: list[frozenset[str]] = []
        current: set[str] = set()
        carried: frozenset[str] = frozenset()
        for number in range(1, line_count + 1):
            extra = set(carried)
            carried = frozenset()
            for directive in by_line.get(number, ()):
                targets = self._targets(directive)
                if directive.action == "disable":
                    current |= targets
                elif directive.action == "enable":
                    current -= targets
                elif directive.action == "disable-line":
                    extra |= targets
                else:
                    carried = carried | targets
            states.append(frozenset(current | extra))
        return states

    @property
    def file_disabled(self) -> frozenset[str]:
        """Rules switched off for the whole document."""
        return self._file_disabled

    def disabled_at(self, line: int) -> frozenset[str]:
        if 1 <= line <= len(self._disabled_at):
            return self._disabled_at[line - 1]
        return frozenset()

    def is_suppressed(self, finding: Finding) -> bool:
        return finding.primary_id in self.disabled_at(finding.line)

    def filter(self, findings: Iterable[Finding]) -> list[Finding]:
        return [finding for finding in findings if not self.is_suppressed(finding)]
