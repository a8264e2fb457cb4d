from __future__ import annotations

from .base import (
    Check,
    CheckResult,
    CodeBlockStyle,
    FenceStyle,
    FunctionCheck,
    HeadingStyle,
    ListMarkerStyle,
    parse_style,
)
from .code import BlanksAroundFences, CodeBlockStyleCheck, CodeFenceStyle, FencedCodeLanguage
from .headings import (
    BlanksAroundHeadings,
    HeadingIncrement,
    HeadingStyleCheck,
    NoMissingSpaceAtx,
    NoMultipleSpaceAtx,
    NoTrailingPunctuation,
    SingleH1,
)
from .lists import ListMarkerSpace, UnorderedListStyle
from .whitespace import LineLength, NoHardTabs, NoMultipleBlanks, NoTrailingSpaces

__all__ = [
    "Check",
    "CheckResult",
    "FunctionCheck",
    "HeadingStyle",
    "ListMarkerStyle",
    "CodeBlockStyle",
    "FenceStyle",
    "parse_style",
    "BUILTIN_CHECKS",
    "DISABLED_BY_DEFAULT",
]

BUILTIN_CHECKS: tuple[type[Check], ...] = (
    HeadingIncrement,
    HeadingStyleCheck,
    UnorderedListStyle,
    NoTrailingSpaces,
    NoHardTabs,
    NoMultipleBlanks,
    LineLength,
    NoMissingSpaceAtx,
    NoMultipleSpaceAtx,
    BlanksAroundHeadings,
    SingleH1,
    NoTrailingPunctuation,
    ListMarkerSpace,
    BlanksAroundFences,
    FencedCodeLanguage,
    CodeBlockStyleCheck,
    CodeFenceStyle,
)

# Line length limits are opt-in.
DISABLED_BY_DEFAULT = frozenset({"MD013"})
