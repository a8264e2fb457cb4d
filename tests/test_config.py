import logging
from pathlib import Path

import pytest

from mdcheck.config import MdcheckConfig, config_from_dict, config_from_yaml, load_config
from mdcheck.errors import ConfigError


def test_defaults():
    config = load_config()
    assert config == MdcheckConfig()
    assert config.rules == {}
    assert config.fix_passes == 3
    assert not config.best_effort
    assert config.extensions == [".md", ".markdown"]


def test_config_from_dict_round_trips_to_dict():
    config = config_from_dict({"rules": {"MD013": {"line_length": 120}}, "parallel_checks": 4})
    assert config.rules == {"MD013": {"line_length": 120}}
    assert config.parallel_checks == 4
    assert config_from_dict(config.to_dict()) == config
    assert config_from_dict(None) == MdcheckConfig()


def test_unknown_keys_are_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="mdcheck.config"):
        config = config_from_dict({"colour": "blue", "fix_passes": 2})
    assert config.fix_passes == 2
    assert "colour" in caplog.text


@pytest.mark.parametrize(
    "data",
    [{"rules": ["MD001"]}, {"parallel_checks": 0}, {"fix_passes": "many"}],
)
def test_invalid_values_raise(data):
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_config_from_yaml(tmp_path: Path):
    path = tmp_path / "mdcheck.yaml"
    path.write_text(
        "rules:\n  default: true\n  line-length:\n    line_length: 100\n"
        "best_effort: true\n",
        encoding="utf-8",
    )
    config = config_from_yaml(path)
    assert config.rules["line-length"] == {"line_length": 100}
    assert config.best_effort


def test_empty_yaml_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert config_from_yaml(path) == MdcheckConfig()


@pytest.mark.parametrize("contents", ["- a\n- b\n", "rules: [unclosed\n"])
def test_bad_yaml_raises_config_error(tmp_path: Path, contents: str):
    path = tmp_path / "bad.yaml"
    path.write_text(contents, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)
