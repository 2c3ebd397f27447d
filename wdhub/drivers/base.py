"""Backend driver interfaces."""

from __future__ import annotations

import inspect
from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class Driver(Protocol):
    def create_session(
        self,
        capabilities: Mapping[str, Any],
        required_capabilities: Mapping[str, Any] | None,
        processed_capabilities: Sequence[Mapping[str, Any]],
    ) -> tuple[str, dict[str, Any]]:
        """Start a session and return its id with the accepted capabilities."""

    def delete_session(self) -> None:
        """Tear the session down."""


async def resolve(result: Any) -> Any:
    """Await backend results that are awaitable; pass plain values through."""
    if inspect.isawaitable(result):
        return await result
    return result
