"""Pluggable markdown linting with conflict-aware automatic fixes."""

from .checks import Check, FunctionCheck
from .config import MdcheckConfig, config_from_dict, load_config
from .edits import EditConflict, FixResult, apply_edits, apply_fixes, find_conflicts
from .engine import LintReport, run_checks, sort_findings
from .errors import (
    CheckExecutionError,
    ConfigError,
    ConflictingEdits,
    DuplicateRuleIDError,
    InvalidEditCoordinates,
    MdcheckError,
)
from .models import Document, DocumentView, Edit, EditKind, Finding, Position, Range
from .parser import parse
from .pipeline import FixOutcome, fix_document, lint_document
from .registry import ActiveCheck, CheckRegistry, default_registry
from .tokens import Token, TokenKind, TokenTree

__all__ = [
    "ActiveCheck",
    "Check",
    "CheckExecutionError",
    "CheckRegistry",
    "ConfigError",
    "ConflictingEdits",
    "Document",
    "DocumentView",
    "DuplicateRuleIDError",
    "Edit",
    "EditConflict",
    "EditKind",
    "Finding",
    "FixOutcome",
    "FixResult",
    "FunctionCheck",
    "InvalidEditCoordinates",
    "LintReport",
    "MdcheckConfig",
    "MdcheckError",
    "Position",
    "Range",
    "Token",
    "TokenKind",
    "TokenTree",
    "apply_edits",
    "apply_fixes",
    "config_from_dict",
    "default_registry",
    "find_conflicts",
    "fix_document",
    "lint_document",
    "load_config",
    "parse",
    "run_checks",
    "sort_findings",
]

__version__ = "0.1.0"
