from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = [".md", ".markdown"]


@dataclass(slots=True)
class MdcheckConfig:
    """Configuration options for linting and fixing markdown documents."""

    rules: Dict[str, Any] = field(default_factory=dict)
    parallel_checks: int = 1
    parallel_files: int = 1
    timeout_seconds: float | None = None
    fix_passes: int = 3
    best_effort: bool = False
    inline_config: bool = True
    front_matter: bool = True
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(MdcheckConfig)}
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))
    kwargs = {key: data[key] for key in data if key in allowed}
    if "rules" in kwargs:
        rules = kwargs["rules"]
        if rules is None:
            kwargs["rules"] = {}
        elif not isinstance(rules, Mapping):
            raise ConfigError("'rules' must be a mapping of rule names or tags.")
        else:
            kwargs["rules"] = dict(rules)
    if "extensions" in kwargs:
        kwargs["extensions"] = [str(ext) for ext in kwargs["extensions"] or ()]
    for name in ("parallel_checks", "parallel_files", "fix_passes"):
        if name in kwargs and (not isinstance(kwargs[name], int) or kwargs[name] < 1):
            raise ConfigError(f"'{name}' must be a positive integer, got {kwargs[name]!r}.")
    return kwargs


def config_from_dict(data: Mapping[str, Any] | None) -> MdcheckConfig:
    """Build an MdcheckConfig from a dictionary-like input."""
    if data is None:
        return MdcheckConfig()
    return MdcheckConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> MdcheckConfig:
    """Load configuration from a YAML (or JSON) file."""
    contents = Path(path).read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(contents) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse configuration file {path}: {exc}") from exc
    if not isinstance(parsed, MutableMapping):
        raise ConfigError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> MdcheckConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return MdcheckConfig()
    return config_from_yaml(path)
