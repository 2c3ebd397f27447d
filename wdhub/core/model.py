"""Core data models used across loader, registry, broker, and router."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

Capabilities = Mapping[str, Any]


@dataclass(frozen=True)
class MatchRules:
    platform_names: tuple[str, ...]
    automation_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class BackendDescriptor:
    id: str
    name: str
    predicate: Callable[[Capabilities], bool]
    factory: Callable[[], Any]
    match: MatchRules | None = None


@dataclass(frozen=True)
class Session:
    id: str
    capabilities: dict[str, Any]
    driver: Any


@dataclass(frozen=True)
class SessionInfo:
    id: str
    capabilities: dict[str, Any]


@dataclass(frozen=True)
class HubStatus:
    ready: bool
    build: Mapping[str, Any]


@dataclass(frozen=True)
class HubConfig:
    default_capabilities: Mapping[str, Any] = field(default_factory=dict)
    session_override: bool = False
