"""Protocol-level errors and translation of domain failures into them."""

from __future__ import annotations

import traceback
from typing import Any

from wdhub.core.errors import CapabilityError, SessionNotFound


class ProtocolError(Exception):
    """Error carrying a W3C WebDriver error code and HTTP status."""

    error = "unknown error"
    http_status = 500

    def envelope(self, session_id: str | None = None) -> dict[str, Any]:
        origin = self.__cause__ if self.__cause__ is not None else self
        stacktrace = "".join(traceback.format_exception(origin)) if origin.__traceback__ else ""
        return {
            "sessionId": session_id,
            "value": {
                "error": self.error,
                "message": str(self),
                "stacktrace": stacktrace,
            },
        }


class InvalidArgument(ProtocolError):
    error = "invalid argument"
    http_status = 400


class InvalidSessionId(ProtocolError):
    error = "invalid session id"
    http_status = 404


class UnknownCommand(ProtocolError):
    error = "unknown command"
    http_status = 404


class UnsupportedOperation(ProtocolError):
    error = "unsupported operation"
    http_status = 500


class SessionNotCreated(ProtocolError):
    error = "session not created"
    http_status = 500


class UnknownError(ProtocolError):
    pass


def to_protocol_error(exc: BaseException, *, creating: bool = False) -> ProtocolError:
    """Map any failure raised while serving a command onto a protocol error."""
    if isinstance(exc, ProtocolError):
        return exc
    if isinstance(exc, CapabilityError):
        translated: ProtocolError = InvalidArgument(str(exc))
    elif isinstance(exc, SessionNotFound):
        translated = InvalidSessionId(str(exc))
    elif isinstance(exc, NotImplementedError):
        translated = UnsupportedOperation(str(exc) or "The backend does not implement this command")
    elif creating:
        translated = SessionNotCreated(str(exc))
    else:
        translated = UnknownError(str(exc) or type(exc).__name__)
    translated.__cause__ = exc
    return translated
