"""In-memory registry of live sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from wdhub.core.errors import SessionIdConflict, SessionNotFound
from wdhub.core.model import Session, SessionInfo
from wdhub.drivers.base import Driver, resolve

LOGGER = logging.getLogger(__name__)


class SessionRegistry:
    """Owns the id -> session map for one broker.

    Insert, remove and listing each take the lock for a single dict
    operation. Backend start-up and teardown run outside the lock, so a slow
    device never stalls traffic for unrelated sessions.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        factory: Callable[[], Driver],
        capabilities: Mapping[str, Any],
        required_capabilities: Mapping[str, Any] | None = None,
        processed_capabilities: Sequence[Mapping[str, Any]] = (),
    ) -> tuple[str, dict[str, Any]]:
        driver = factory()
        session_id, accepted = await resolve(
            driver.create_session(capabilities, required_capabilities, list(processed_capabilities))
        )
        session_id = str(session_id)
        session = Session(id=session_id, capabilities=dict(accepted or {}), driver=driver)

        try:
            async with self._lock:
                conflict = session_id in self._sessions
                if not conflict:
                    self._sessions[session_id] = session
        except BaseException:
            # Cancelled while waiting for the lock: the backend is up but unregistered.
            await self._teardown(session)
            raise

        if conflict:
            await self._teardown(session)
            raise SessionIdConflict(f"Backend returned session id '{session_id}' which is already in use")
        return session.id, dict(session.capabilities)

    async def list(self) -> list[SessionInfo]:
        async with self._lock:
            sessions = list(self._sessions.values())
        return [SessionInfo(id=s.id, capabilities=dict(s.capabilities)) for s in sessions]

    async def ids(self) -> list[str]:
        async with self._lock:
            return list(self._sessions)

    async def get(self, session_id: str) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def count(self) -> int:
        async with self._lock:
            return len(self._sessions)

    async def delete(self, session_id: str) -> None:
        """Unregister the session, then ask its backend to shut down.

        Teardown failures are logged and dropped: the entry is gone either
        way, which is what eviction of already-dead backends relies on.
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        await self._teardown(session)

    async def _teardown(self, session: Session) -> None:
        try:
            await resolve(session.driver.delete_session())
        except Exception as exc:
            LOGGER.warning("Teardown of session %s failed: %s", session.id, exc)
