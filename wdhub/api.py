"""Stable public API for embedding the wdhub session broker.

This module is the supported integration surface for third-party callers
(HTTP front ends, test harnesses, scripts). Avoid importing from internal
modules unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from wdhub.core.backend_loader import load_backends
from wdhub.core.broker import SessionBroker
from wdhub.core.caps import match_backend, merge_capabilities
from wdhub.core.config import load_config
from wdhub.core.errors import (
    BackendError,
    BackendLoadError,
    BackendValidationError,
    CapabilityError,
    ConfigError,
    HubError,
    MalformedCapabilities,
    MissingRequiredCapability,
    NoMatchingBackend,
    SessionIdConflict,
    SessionNotFound,
)
from wdhub.core.model import BackendDescriptor, HubConfig, HubStatus, MatchRules, SessionInfo
from wdhub.router import (
    CommandDispatcher,
    CommandRequest,
    CommandResponse,
    Route,
    build_dispatch_table,
    get_hub_router,
)

__all__ = [
    "BackendError",
    "BackendLoadError",
    "BackendValidationError",
    "CapabilityError",
    "ConfigError",
    "HubError",
    "MalformedCapabilities",
    "MissingRequiredCapability",
    "NoMatchingBackend",
    "SessionIdConflict",
    "SessionNotFound",
    "BackendDescriptor",
    "HubConfig",
    "HubStatus",
    "MatchRules",
    "SessionInfo",
    "SessionBroker",
    "CommandDispatcher",
    "CommandRequest",
    "CommandResponse",
    "Route",
    "build_dispatch_table",
    "get_hub_router",
    "load_backends",
    "load_config",
    "match_backend",
    "merge_capabilities",
    "Hub",
]


class Hub:
    """A broker with its routes already attached to an in-memory dispatcher.

    ``Hub.execute`` takes a protocol request as ``(method, path, body)`` and
    returns the protocol response, so a front end only has to do framing.
    """

    def __init__(
        self,
        config: HubConfig | Mapping[str, Any] | None = None,
        *,
        backends: Sequence[BackendDescriptor] | None = None,
    ) -> None:
        self._dispatcher = CommandDispatcher()
        configure = get_hub_router(config, backends=tuple(backends) if backends is not None else None)
        self._broker = configure(self._dispatcher)

    @property
    def broker(self) -> SessionBroker:
        return self._broker

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._broker.load_warnings

    async def execute(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
    ) -> CommandResponse:
        return await self._dispatcher.dispatch(method, path, body)
