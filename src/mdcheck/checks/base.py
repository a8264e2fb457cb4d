from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence, TypeVar, Union

from ..errors import CheckExecutionError
from ..models import DocumentView, Edit, Finding, Range

CheckResult = Union[Sequence[Finding], CheckExecutionError]

DOCS_URL = "https://github.com/DavidAnson/markdownlint/blob/main/doc/{rule}.md"


class HeadingStyle(Enum):
    CONSISTENT = "consistent"
    ATX = "atx"
    ATX_CLOSED = "atx_closed"
    SETEXT = "setext"
    SETEXT_WITH_ATX = "setext_with_atx"
    SETEXT_WITH_ATX_CLOSED = "setext_with_atx_closed"


class ListMarkerStyle(Enum):
    CONSISTENT = "consistent"
    ASTERISK = "asterisk"
    PLUS = "plus"
    DASH = "dash"

    @property
    def marker(self) -> str:
        return {"asterisk": "*", "plus": "+", "dash": "-"}[self.value]


class CodeBlockStyle(Enum):
    CONSISTENT = "consistent"
    FENCED = "fenced"
    INDENTED = "indented"


class FenceStyle(Enum):
    CONSISTENT = "consistent"
    BACKTICK = "backtick"
    TILDE = "tilde"

    @property
    def char(self) -> str:
        return "`" if self is FenceStyle.BACKTICK else "~"


StyleT = TypeVar("StyleT", bound=Enum)


def parse_style(style_type: type[StyleT], value: Any) -> StyleT:
    """Resolve a configured style name into its enum member."""
    if isinstance(value, style_type):
        return value
    try:
        return style_type(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in style_type)
        raise ValueError(
            f"Unknown {style_type.__name__} {value!r}; expected one of: {allowed}."
        ) from None


class Check(ABC):
    """Abstract interface for a single markdown rule.

    Subclasses declare ``names`` (primary id first, then aliases) and
    implement :meth:`run`, which must only read the view it is given.
    """

    names: tuple[str, ...] = ()
    description: str = ""
    tags: tuple[str, ...] = ()
    default_config: Mapping[str, Any] = MappingProxyType({})
    information: str | None = None

    @property
    def primary_id(self) -> str:
        return self.names[0]

    @abstractmethod
    def run(self, view: DocumentView) -> CheckResult:
        """Return findings for ``view``."""
        raise NotImplementedError

    def finding(
        self,
        line: int,
        *,
        message: str | None = None,
        column: int | None = None,
        length: int | None = None,
        range: Range | None = None,
        detail: str | None = None,
        context: str | None = None,
        edit: Edit | None = None,
    ) -> Finding:
        """Build a finding owned by this check."""
        return Finding(
            rule_ids=self.names,
            message=message or self.description,
            line=line,
            column=column,
            length=length,
            range=range,
            detail=detail,
            context=context,
            edit=edit,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({'/'.join(self.names)})"


class FunctionCheck(Check):
    """Adapt an arbitrary callable into the Check interface."""

    def __init__(
        self,
        names: Sequence[str],
        func: Callable[[DocumentView], CheckResult],
        *,
        description: str = "",
        tags: Sequence[str] = (),
        default_config: Mapping[str, Any] | None = None,
        information: str | None = None,
    ) -> None:
        if not names:
            raise ValueError("A check needs at least one name.")
        self.names = tuple(names)
        self.description = description
        self.tags = tuple(tags)
        self.default_config = MappingProxyType(dict(default_config or {}))
        self.information = information
        self._func = func

    def run(self, view: DocumentView) -> CheckResult:
        return self._func(view)
