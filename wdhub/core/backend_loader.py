"""Backend descriptor loading and validation for YAML-based wdhub backends."""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

from wdhub.core.caps import rules_predicate
from wdhub.core.documents import read_yaml, validate_document
from wdhub.core.errors import BackendLoadError, BackendValidationError
from wdhub.core.model import BackendDescriptor, MatchRules

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedBackends:
    backends: tuple[BackendDescriptor, ...]
    warnings: tuple[str, ...]


def _backend_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "wdhub/backends", xdg_data / "wdhub/backends"


def _normalize_names(values: list[str]) -> tuple[str, ...]:
    return tuple(value.strip().lower() for value in values)


def import_factory(target: str) -> Callable[..., Any]:
    """Import ``module:attribute`` and return the attribute."""
    module_name, _, attr_path = target.partition(":")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise BackendLoadError(f"Could not import backend module '{module_name}': {exc}") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise BackendLoadError(f"Backend factory '{target}' does not exist") from exc
    if not callable(obj):
        raise BackendLoadError(f"Backend factory '{target}' is not callable")
    return obj


def lazy_factory(target: str) -> Callable[[], Any]:
    """Defer importing a driver module until a session actually needs it."""

    def _factory() -> Any:
        return import_factory(target)()

    _factory.__qualname__ = target
    return _factory


def _build_descriptor(doc: dict[str, Any], source: Path | Traversable) -> BackendDescriptor:
    validate_document(doc, "backend.schema.json", source, invalid_error=BackendValidationError)

    rules = MatchRules(
        platform_names=_normalize_names(doc["match"].get("platform_names", [])),
        automation_names=_normalize_names(doc["match"].get("automation_names", [])),
    )
    if any(not name for name in rules.platform_names + rules.automation_names):
        raise BackendValidationError(f"{doc['id']}.match must not contain blank names")

    return BackendDescriptor(
        id=doc["id"],
        name=doc["name"],
        predicate=rules_predicate(rules),
        factory=lazy_factory(doc["factory"]),
        match=rules,
    )


def _iter_packaged_backend_paths() -> list[Traversable]:
    backend_root = resources.files("wdhub.backends")
    return [item for item in backend_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_backend_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _backend_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def _read_descriptor(path: Path | Traversable) -> BackendDescriptor:
    doc = read_yaml(path, read_error=BackendLoadError, invalid_error=BackendValidationError)
    return _build_descriptor(doc, path)


def load_backends() -> LoadedBackends:
    """Load packaged then user descriptors; the resulting order is the matching order."""
    backends: dict[str, BackendDescriptor] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_backend_paths(), key=lambda p: p.name):
        descriptor = _read_descriptor(path)
        backends[descriptor.id] = descriptor

    for path in _iter_user_backend_paths():
        descriptor = _read_descriptor(path)
        if descriptor.id in backends:
            warning = f"User backend '{descriptor.id}' overrides packaged backend"
            LOGGER.warning(warning)
            warnings.append(warning)
        backends[descriptor.id] = descriptor

    return LoadedBackends(backends=tuple(backends.values()), warnings=tuple(warnings))
