"""Protocol command table: which (method, path) maps to which command."""

from __future__ import annotations

import re
from dataclasses import dataclass

_PARAM_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

SESSION_PARAM = "sessionId"


@dataclass(frozen=True)
class PayloadParams:
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommandSpec:
    method: str
    path: str
    command: str
    payload: PayloadParams = PayloadParams()


def path_params(path: str) -> tuple[str, ...]:
    return tuple(_PARAM_RE.findall(path))


# Handled by the broker itself rather than forwarded to a backend.
SESSION_COMMANDS = frozenset({"create_session", "get_sessions", "delete_session", "get_status"})

_S = "/session/{sessionId}"
_E = _S + "/element/{elementId}"

COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("GET", "/status", "get_status"),
    CommandSpec(
        "POST",
        "/session",
        "create_session",
        PayloadParams(optional=("desiredCapabilities", "requiredCapabilities", "capabilities")),
    ),
    CommandSpec("GET", "/sessions", "get_sessions"),
    CommandSpec("GET", _S, "get_session"),
    CommandSpec("DELETE", _S, "delete_session"),
    CommandSpec("GET", _S + "/timeouts", "get_timeouts"),
    CommandSpec("POST", _S + "/timeouts", "set_timeouts", PayloadParams(optional=("type", "ms", "script", "pageLoad", "implicit"))),
    CommandSpec("GET", _S + "/url", "get_url"),
    CommandSpec("POST", _S + "/url", "set_url", PayloadParams(required=("url",))),
    CommandSpec("POST", _S + "/back", "back"),
    CommandSpec("POST", _S + "/forward", "forward"),
    CommandSpec("POST", _S + "/refresh", "refresh"),
    CommandSpec("GET", _S + "/title", "get_title"),
    CommandSpec("GET", _S + "/window", "get_window_handle"),
    CommandSpec("GET", _S + "/window/handles", "get_window_handles"),
    CommandSpec("GET", _S + "/source", "get_page_source"),
    CommandSpec("GET", _S + "/screenshot", "get_screenshot"),
    CommandSpec("POST", _S + "/execute/sync", "execute", PayloadParams(required=("script", "args"))),
    CommandSpec("POST", _S + "/execute/async", "execute_async", PayloadParams(required=("script", "args"))),
    CommandSpec("POST", _S + "/element", "find_element", PayloadParams(required=("using", "value"))),
    CommandSpec("POST", _S + "/elements", "find_elements", PayloadParams(required=("using", "value"))),
    CommandSpec("GET", _S + "/element/active", "get_active_element"),
    CommandSpec("POST", _E + "/element", "find_element_from_element", PayloadParams(required=("using", "value"))),
    CommandSpec("POST", _E + "/elements", "find_elements_from_element", PayloadParams(required=("using", "value"))),
    CommandSpec("POST", _E + "/click", "click"),
    CommandSpec("POST", _E + "/clear", "clear"),
    CommandSpec("POST", _E + "/value", "set_value", PayloadParams(required=("text",))),
    CommandSpec("GET", _E + "/text", "get_text"),
    CommandSpec("GET", _E + "/name", "get_name"),
    CommandSpec("GET", _E + "/attribute/{name}", "get_attribute"),
    CommandSpec("GET", _E + "/displayed", "element_displayed"),
    CommandSpec("GET", _E + "/enabled", "element_enabled"),
    CommandSpec("GET", _E + "/selected", "element_selected"),
    CommandSpec("GET", _E + "/rect", "get_element_rect"),
    CommandSpec("POST", _S + "/actions", "perform_actions", PayloadParams(required=("actions",))),
    CommandSpec("DELETE", _S + "/actions", "release_actions"),
    CommandSpec("GET", _S + "/orientation", "get_orientation"),
    CommandSpec("POST", _S + "/orientation", "set_orientation", PayloadParams(required=("orientation",))),
    CommandSpec("GET", _S + "/contexts", "get_contexts"),
    CommandSpec("GET", _S + "/context", "get_current_context"),
    CommandSpec("POST", _S + "/context", "set_context", PayloadParams(required=("name",))),
    CommandSpec("POST", _S + "/log", "get_log", PayloadParams(required=("type",))),
    CommandSpec("GET", _S + "/log/types", "get_log_types"),
    CommandSpec("POST", _S + "/appium/device/install_app", "install_app", PayloadParams(required=("appPath",), optional=("options",))),
    CommandSpec("POST", _S + "/appium/device/remove_app", "remove_app", PayloadParams(required=("appId",), optional=("options",))),
    CommandSpec("POST", _S + "/appium/device/hide_keyboard", "hide_keyboard", PayloadParams(optional=("strategy", "key"))),
    CommandSpec("POST", _S + "/appium/app/launch", "launch_app"),
    CommandSpec("POST", _S + "/appium/app/close", "close_app"),
    CommandSpec("POST", _S + "/appium/app/reset", "reset"),
    CommandSpec("POST", _S + "/appium/app/background", "background", PayloadParams(optional=("seconds",))),
)
