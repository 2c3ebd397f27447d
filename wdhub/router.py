"""Command routing: builds the dispatch table and attaches it to a route surface.

Construction happens in two phases. ``build_dispatch_table`` turns the
protocol command table into an immutable tuple of routes bound to one broker.
``get_hub_router`` returns a function that, once called with a surface,
creates a fresh broker, builds the table and registers each route.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from wdhub.core.broker import SessionBroker
from wdhub.core.config import config_from_mapping
from wdhub.core.model import BackendDescriptor, HubConfig
from wdhub.drivers.base import resolve
from wdhub.protocol.commands import COMMANDS, SESSION_COMMANDS, SESSION_PARAM, CommandSpec, path_params
from wdhub.protocol.errors import (
    InvalidArgument,
    InvalidSessionId,
    ProtocolError,
    UnknownCommand,
    to_protocol_error,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandRequest:
    path_params: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class CommandResponse:
    status: int
    body: dict[str, Any]


Handler = Callable[[CommandRequest], Awaitable[CommandResponse]]


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    command: str
    handler: Handler


class RouteSurface(Protocol):
    def add_route(self, method: str, path: str, handler: Handler) -> Any:
        """Register ``handler`` for ``method`` requests on ``path``."""


def _ok(value: Any, session_id: str | None = None) -> CommandResponse:
    return CommandResponse(status=200, body={"sessionId": session_id, "value": value})


def _failed(exc: BaseException, session_id: str | None = None, *, creating: bool = False) -> CommandResponse:
    error = to_protocol_error(exc, creating=creating)
    if not isinstance(exc, ProtocolError) and error.http_status >= 500:
        LOGGER.warning("Command failed for session %s: %s", session_id, exc)
    return CommandResponse(status=error.http_status, body=error.envelope(session_id))


def _payload_args(spec: CommandSpec, body: Mapping[str, Any] | None) -> list[Any]:
    body = body or {}
    missing = [name for name in spec.payload.required if name not in body]
    if missing:
        raise InvalidArgument(
            f"Command '{spec.command}' requires parameter(s): {', '.join(missing)}"
        )
    names = spec.payload.required + spec.payload.optional
    return [body.get(name) for name in names]


def _session_handler(broker: SessionBroker, spec: CommandSpec) -> Handler:
    async def _handle(request: CommandRequest) -> CommandResponse:
        session_id = request.path_params.get(SESSION_PARAM)
        try:
            if spec.command == "create_session":
                body = request.body or {}
                for key in ("desiredCapabilities", "requiredCapabilities", "capabilities"):
                    if body.get(key) is not None and not isinstance(body[key], Mapping):
                        raise InvalidArgument(f"'{key}' must be a JSON object")
                new_id, caps = await broker.create_session(
                    body.get("desiredCapabilities"),
                    body.get("requiredCapabilities"),
                    body.get("capabilities"),
                )
                return _ok({"sessionId": new_id, "capabilities": caps}, new_id)
            if spec.command == "get_sessions":
                sessions = await broker.get_sessions()
                return _ok([{"id": s.id, "capabilities": s.capabilities} for s in sessions])
            if spec.command == "delete_session":
                await broker.delete_session(session_id)
                return _ok(None, session_id)
            status = await broker.get_status()
            return _ok({"ready": status.ready, "build": dict(status.build)})
        except Exception as exc:
            return _failed(exc, session_id, creating=spec.command == "create_session")

    return _handle


def _passthrough_handler(broker: SessionBroker, spec: CommandSpec) -> Handler:
    extra_params = tuple(p for p in path_params(spec.path) if p != SESSION_PARAM)

    async def _handle(request: CommandRequest) -> CommandResponse:
        session_id = request.path_params.get(SESSION_PARAM)
        try:
            if not session_id:
                raise InvalidSessionId("A session is either terminated or not started")
            session = await broker.get_session(session_id)
            operation = getattr(session.driver, spec.command, None)
            if not callable(operation):
                raise UnknownCommand(
                    f"The '{spec.command}' command is not implemented by the backend for this session"
                )
            args = [request.path_params[name] for name in extra_params]
            args.extend(_payload_args(spec, request.body))
            result = await resolve(operation(*args))
        except Exception as exc:
            return _failed(exc, session_id)
        return _ok(result, session_id)

    return _handle


def build_dispatch_table(
    broker: SessionBroker,
    commands: tuple[CommandSpec, ...] = COMMANDS,
) -> tuple[Route, ...]:
    routes: list[Route] = []
    for spec in commands:
        if spec.command in SESSION_COMMANDS:
            handler = _session_handler(broker, spec)
        else:
            handler = _passthrough_handler(broker, spec)
        routes.append(Route(method=spec.method, path=spec.path, command=spec.command, handler=handler))
    return tuple(routes)


def get_hub_router(
    config: HubConfig | Mapping[str, Any] | None = None,
    *,
    backends: tuple[BackendDescriptor, ...] | None = None,
) -> Callable[[RouteSurface], SessionBroker]:
    """Return a function that wires a new broker's routes onto a surface.

    Calling this creates nothing; every call of the returned function builds
    its own broker, registry and dispatch table.
    """
    hub_config = config if isinstance(config, HubConfig) else config_from_mapping(config)

    def configure_routes(surface: RouteSurface) -> SessionBroker:
        broker = SessionBroker(hub_config, backends=backends)
        for route in build_dispatch_table(broker):
            surface.add_route(route.method, route.path, route.handler)
        return broker

    return configure_routes


def _pattern_for(path: str) -> re.Pattern[str]:
    regex = re.escape(path)
    for name in path_params(path):
        regex = regex.replace(re.escape("{" + name + "}"), f"(?P<{name}>[^/]+)")
    return re.compile(f"^{regex}$")


class CommandDispatcher:
    """In-memory route surface that resolves ``(method, path)`` to a handler."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, re.Pattern[str], Handler]] = []

    def add_route(self, method: str, path: str, handler: Handler) -> None:
        self.routes.append((method.upper(), path, _pattern_for(path), handler))

    async def dispatch(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
    ) -> CommandResponse:
        method = method.upper()
        for route_method, _, pattern, handler in self.routes:
            if route_method != method:
                continue
            match = pattern.match(path)
            if match:
                return await handler(CommandRequest(path_params=match.groupdict(), body=body))
        error = UnknownCommand(f"The requested resource could not be found: {method} {path}")
        return CommandResponse(status=error.http_status, body=error.envelope())
