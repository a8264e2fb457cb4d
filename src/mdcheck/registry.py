from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from .checks.base import Check
from .errors import ConfigError, DuplicateRuleIDError, RegistrationError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"


@dataclass(frozen=True, slots=True)
class ActiveCheck:
    """A check selected for a run together with its resolved options."""

    check: Check
    config: Mapping[str, Any]

    @property
    def names(self) -> tuple[str, ...]:
        return self.check.names

    @property
    def primary_id(self) -> str:
        return self.check.primary_id


class CheckRegistry:
    """Ordered collection of checks indexed by alias and tag.

    Lookups are exact and case-sensitive. Registration order is the order
    checks run in and the order their results are merged in.
    """

    def __init__(self) -> None:
        self._checks: list[Check] = []
        self._enabled: dict[str, bool] = {}
        self._by_name: dict[str, Check] = {}
        self._by_tag: dict[str, list[Check]] = {}

    def register(self, check: Check, enabled: bool = True) -> Check:
        """Add ``check``; raises :class:`DuplicateRuleIDError` on alias collisions."""
        if not check.names:
            raise RegistrationError(f"{type(check).__name__} declares no names.")
        seen: set[str] = set()
        for name in check.names:
            existing = self._by_name.get(name)
            if existing is not None:
                raise DuplicateRuleIDError(name, existing.primary_id, check.primary_id)
            if name in seen:
                raise DuplicateRuleIDError(name, check.primary_id, check.primary_id)
            seen.add(name)

        self._checks.append(check)
        self._enabled[check.primary_id] = enabled
        for name in check.names:
            self._by_name[name] = check
        for tag in check.tags:
            self._by_tag.setdefault(tag, []).append(check)
        logger.debug("Registered check %s (tags: %s)", "/".join(check.names), check.tags)
        return check

    def get(self, name: str) -> Check | None:
        return self._by_name.get(name)

    def by_tag(self, tag: str) -> list[Check]:
        return list(self._by_tag.get(tag, ()))

    def checks(self) -> list[Check]:
        return list(self._checks)

    def tags(self) -> list[str]:
        return sorted(self._by_tag)

    def enabled_by_default(self, check: Check) -> bool:
        return self._enabled.get(check.primary_id, False)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Check]:
        return iter(self._checks)

    def __len__(self) -> int:
        return len(self._checks)

    def lookup(self, key: str) -> list[Check]:
        """Checks named by ``key``: an alias first, otherwise a tag."""
        check = self._by_name.get(key)
        if check is not None:
            return [check]
        return self.by_tag(key)

    def primary_ids(self, keys: Iterable[str]) -> set[str]:
        """Primary ids of every check named by ``keys``; unknown keys are skipped."""
        return {check.primary_id for key in keys for check in self.lookup(key)}

    def resolve(
        self,
        rules_config: Mapping[str, Any] | None = None,
        disabled: Iterable[str] = (),
    ) -> list[ActiveCheck]:
        """Return the enabled checks, in registration order, with merged options.

        ``rules_config`` follows the markdownlint shape: an optional
        ``default`` boolean, then per alias or tag either a boolean or a
        mapping of options (which also enables the check).
        """
        rules = dict(rules_config or {})
        default = rules.pop(DEFAULT_KEY, None)
        if default is not None and not isinstance(default, bool):
            raise ConfigError(f"'{DEFAULT_KEY}' must be a boolean, got {default!r}.")

        state = {
            check.primary_id: self._enabled[check.primary_id] if default is None else default
            for check in self._checks
        }
        options: dict[str, dict[str, Any]] = {}
        for key, value in rules.items():
            targets = self.lookup(str(key))
            if not targets:
                logger.warning("Ignoring unknown rule or tag %r in configuration.", key)
                continue
            if isinstance(value, bool):
                for check in targets:
                    state[check.primary_id] = value
            elif isinstance(value, Mapping):
                for check in targets:
                    state[check.primary_id] = True
                    options.setdefault(check.primary_id, {}).update(value)
            else:
                raise ConfigError(
                    f"Rule {key!r} must be a boolean or a mapping, got {type(value).__name__}."
                )

        off = self.primary_ids(disabled)
        active: list[ActiveCheck] = []
        for check in self._checks:
            if not state[check.primary_id] or check.primary_id in off:
                continue
            merged = {**check.default_config, **options.get(check.primary_id, {})}
            active.append(ActiveCheck(check=check, config=MappingProxyType(merged)))
        return active


def default_registry() -> CheckRegistry:
    """Build a registry holding every built-in check."""
    from .checks import BUILTIN_CHECKS, DISABLED_BY_DEFAULT

    registry = CheckRegistry()
    for check_type in BUILTIN_CHECKS:
        check = check_type()
        registry.register(check, enabled=check.primary_id not in DISABLED_BY_DEFAULT)
    return registry
