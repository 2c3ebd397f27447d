"""Session broker: validates, merges, matches, evicts, and registers sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from importlib import metadata
from typing import Any

from wdhub.core.backend_loader import load_backends
from wdhub.core.caps import PLATFORM_NAME, match_backend, merge_capabilities, require_platform
from wdhub.core.errors import MalformedCapabilities, MissingRequiredCapability, SessionNotFound
from wdhub.core.model import BackendDescriptor, HubConfig, HubStatus, Session, SessionInfo
from wdhub.core.registry import SessionRegistry

LOGGER = logging.getLogger(__name__)


def installed_build_info() -> dict[str, Any]:
    try:
        version = metadata.version("wdhub")
    except metadata.PackageNotFoundError:
        version = "0.0.0+unknown"
    return {"version": version, "revision": None}


def w3c_candidates(w3c_capabilities: Mapping[str, Any] | None) -> list[dict[str, Any]]:
    """Expand a W3C ``capabilities`` object into alwaysMatch+firstMatch candidates."""
    if not w3c_capabilities:
        return []
    always = w3c_capabilities.get("alwaysMatch") or {}
    if not isinstance(always, Mapping):
        raise MalformedCapabilities("capabilities.alwaysMatch must be a JSON object")
    first_match = w3c_capabilities.get("firstMatch") or [{}]
    if not isinstance(first_match, list):
        raise MalformedCapabilities("capabilities.firstMatch must be a JSON array")
    candidates: list[dict[str, Any]] = []
    for position, candidate in enumerate(first_match):
        if not isinstance(candidate, Mapping):
            raise MalformedCapabilities(f"capabilities.firstMatch[{position}] must be a JSON object")
        candidates.append({**always, **candidate})
    return candidates


class SessionBroker:
    def __init__(
        self,
        config: HubConfig | None = None,
        *,
        backends: Sequence[BackendDescriptor] | None = None,
        build_info: Callable[[], Mapping[str, Any]] | None = None,
    ) -> None:
        self.config = config or HubConfig()
        self.load_warnings: tuple[str, ...] = ()
        if backends is None:
            loaded = load_backends()
            backends = loaded.backends
            self.load_warnings = loaded.warnings
        self.backends = tuple(backends)
        self.registry = SessionRegistry()
        self._build_info = build_info or installed_build_info

    async def create_session(
        self,
        desired_capabilities: Mapping[str, Any] | None,
        required_capabilities: Mapping[str, Any] | None = None,
        w3c_capabilities: Mapping[str, Any] | None = None,
    ) -> tuple[str, dict[str, Any]]:
        processed = w3c_candidates(w3c_capabilities)
        desired = dict(desired_capabilities or {})
        if not desired and processed:
            desired = processed[0]
        if not desired:
            raise MissingRequiredCapability(PLATFORM_NAME)
        require_platform(desired)

        effective = merge_capabilities(self.config.default_capabilities, desired)
        factory = match_backend(effective, self.backends)

        if self.config.session_override:
            await self._evict_all()

        session_id, accepted = await self.registry.create(
            factory,
            effective,
            required_capabilities,
            processed,
        )
        LOGGER.info("Created session %s for platform %s", session_id, effective.get(PLATFORM_NAME))
        return session_id, accepted

    async def _evict_all(self) -> None:
        session_ids = await self.registry.ids()
        if not session_ids:
            return
        LOGGER.info("Session override is on; evicting %d existing session(s)", len(session_ids))
        results = await asyncio.gather(
            *(self.registry.delete(session_id) for session_id in session_ids),
            return_exceptions=True,
        )
        for session_id, result in zip(session_ids, results):
            if isinstance(result, SessionNotFound):
                LOGGER.debug("Session %s was already gone before eviction", session_id)
            elif isinstance(result, BaseException):
                LOGGER.warning("Could not evict session %s: %s", session_id, result)

    async def delete_session(self, session_id: str) -> None:
        await self.registry.delete(session_id)
        LOGGER.info("Deleted session %s", session_id)

    async def get_sessions(self) -> list[SessionInfo]:
        return await self.registry.list()

    async def get_session(self, session_id: str) -> Session:
        return await self.registry.get(session_id)

    async def session_exists(self, session_id: str) -> bool:
        try:
            await self.registry.get(session_id)
        except SessionNotFound:
            return False
        return True

    async def get_status(self) -> HubStatus:
        return HubStatus(ready=True, build=dict(self._build_info()))
