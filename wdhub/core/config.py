"""Broker configuration loading."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from wdhub.core.documents import read_yaml, validate_document
from wdhub.core.errors import ConfigError
from wdhub.core.model import HubConfig


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "wdhub/config.yaml"


def _normalize_bool(value: Any, *, context: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise ConfigError(f"{context} must be boolean true/false, got {value!r}")


def config_from_mapping(data: Mapping[str, Any] | None) -> HubConfig:
    data = data or {}
    default_caps = data.get("default_capabilities") or {}
    if not isinstance(default_caps, Mapping):
        raise ConfigError("default_capabilities must be a mapping of capability names to values")
    return HubConfig(
        default_capabilities=dict(default_caps),
        session_override=_normalize_bool(data.get("session_override", False), context="session_override"),
    )


def load_config(path: Path | None = None) -> HubConfig:
    """Read the broker config; a missing default file means built-in defaults."""
    if path is None:
        path = default_config_path()
        if not path.exists():
            return HubConfig()
    elif not path.exists():
        raise ConfigError(f"Config file {path} does not exist")

    doc = read_yaml(path, read_error=ConfigError, invalid_error=ConfigError)
    validate_document(doc, "config.schema.json", path, invalid_error=ConfigError)
    return config_from_mapping(doc)
