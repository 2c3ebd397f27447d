from __future__ import annotations

import asyncio

import pytest

from doubles import RecordingDriver
from wdhub.core.errors import SessionIdConflict, SessionNotFound
from wdhub.core.registry import SessionRegistry

pytestmark = pytest.mark.asyncio


async def test_create_list_get_delete() -> None:
    registry = SessionRegistry()
    driver = RecordingDriver("abc")
    session_id, caps = await registry.create(lambda: driver, {"platformName": "Fake"})

    assert (session_id, caps) == ("abc", {"platformName": "Fake"})
    assert driver.create_calls == [({"platformName": "Fake"}, None, [])]
    assert [s.id for s in await registry.list()] == ["abc"]
    assert (await registry.get("abc")).driver is driver
    assert await registry.count() == 1

    await registry.delete("abc")
    assert await registry.list() == []
    assert driver.delete_calls == 1
    with pytest.raises(SessionNotFound):
        await registry.get("abc")


async def test_backend_ids_are_registered_as_strings() -> None:
    registry = SessionRegistry()
    session_id, _ = await registry.create(lambda: RecordingDriver(1), {"platformName": "Fake"})

    assert session_id == "1"
    assert (await registry.get("1")).id == "1"


async def test_delete_unknown_session() -> None:
    with pytest.raises(SessionNotFound, match="nope"):
        await SessionRegistry().delete("nope")


async def test_teardown_failure_still_removes_entry() -> None:
    registry = SessionRegistry()
    driver = RecordingDriver("dead", teardown_error="already shut down")
    await registry.create(lambda: driver, {"platformName": "Fake"})

    await registry.delete("dead")
    assert await registry.count() == 0
    assert driver.delete_calls == 1


async def test_backend_create_failure_propagates_unchanged() -> None:
    class Refusing(RecordingDriver):
        def create_session(self, capabilities, required_capabilities, processed_capabilities):
            raise ValueError("app not found")

    registry = SessionRegistry()
    with pytest.raises(ValueError, match="app not found"):
        await registry.create(Refusing, {"platformName": "Fake"})
    assert await registry.count() == 0


async def test_reused_id_is_rejected_and_new_backend_torn_down() -> None:
    registry = SessionRegistry()
    first = RecordingDriver("same")
    second = RecordingDriver("same")
    await registry.create(lambda: first, {"platformName": "Fake"})

    with pytest.raises(SessionIdConflict):
        await registry.create(lambda: second, {"platformName": "Fake"})

    assert (await registry.get("same")).driver is first
    assert second.delete_calls == 1
    assert first.delete_calls == 0


async def test_session_invisible_until_backend_finished_starting() -> None:
    class SlowDriver(RecordingDriver):
        def __init__(self, gate: asyncio.Event) -> None:
            super().__init__("slow")
            self.gate = gate

        async def create_session(self, capabilities, required_capabilities, processed_capabilities):
            await self.gate.wait()
            return self.session_id, dict(capabilities)

    registry = SessionRegistry()
    gate = asyncio.Event()
    task = asyncio.create_task(registry.create(lambda: SlowDriver(gate), {"platformName": "Fake"}))
    await asyncio.sleep(0)
    assert await registry.list() == []

    gate.set()
    await task
    assert [s.id for s in await registry.list()] == ["slow"]


async def test_cancelled_create_tears_down_started_backend() -> None:
    registry = SessionRegistry()
    driver = RecordingDriver("orphan")

    await registry._lock.acquire()
    task = asyncio.create_task(registry.create(lambda: driver, {"platformName": "Fake"}))
    for _ in range(3):
        await asyncio.sleep(0)
    assert len(driver.create_calls) == 1

    task.cancel()
    registry._lock.release()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await registry.count() == 0
    assert driver.delete_calls == 1
