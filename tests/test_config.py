from __future__ import annotations

import os
from pathlib import Path

import pytest

from wdhub.core.config import config_from_mapping, load_config
from wdhub.core.errors import ConfigError
from wdhub.core.model import HubConfig


def test_missing_default_config_gives_defaults() -> None:
    assert load_config() == HubConfig()


def test_default_location_is_read(tmp_path: Path) -> None:
    path = Path(os.environ["XDG_CONFIG_HOME"]) / "wdhub" / "config.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("session_override: true\n", encoding="utf-8")

    assert load_config().session_override is True


def test_explicit_config_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "hub.yaml"
    path.write_text(
        """
default_capabilities:
  deviceName: Emulator
  fullReset: false
  language: no
session_override: true
""",
        encoding="utf-8",
    )

    config = load_config(path)
    assert config.session_override is True
    assert config.default_capabilities == {
        "deviceName": "Emulator",
        "fullReset": False,
        "language": "no",
    }


def test_explicit_missing_path_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="does not exist"):
        load_config(tmp_path / "nope.yaml")


def test_schema_violation_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "hub.yaml"
    path.write_text("session_override: sometimes\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="session_override"):
        load_config(path)


def test_unknown_keys_rejected(tmp_path: Path) -> None:
    path = tmp_path / "hub.yaml"
    path.write_text("port: 4723\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_config_from_mapping() -> None:
    assert config_from_mapping({}) == HubConfig()
    config = config_from_mapping({"default_capabilities": {"app": "X"}, "session_override": True})
    assert config.default_capabilities == {"app": "X"}
    assert config.session_override is True
    with pytest.raises(ConfigError):
        config_from_mapping({"default_capabilities": ["app"]})


@pytest.mark.parametrize(("raw", "expected"), [("false", False), (" TRUE ", True), (False, False), (True, True)])
def test_session_override_strings_are_parsed_not_coerced(raw, expected) -> None:
    assert config_from_mapping({"session_override": raw}).session_override is expected


@pytest.mark.parametrize("raw", ["sometimes", "0", 1, None])
def test_session_override_rejects_non_booleans(raw) -> None:
    with pytest.raises(ConfigError, match="session_override"):
        config_from_mapping({"session_override": raw})
