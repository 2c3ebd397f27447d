"""In-memory fake backend used for tests and dry runs."""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from wdhub.core.errors import BackendError

_ORIENTATIONS = frozenset({"PORTRAIT", "LANDSCAPE"})


class FakeDriver:
    """Pretends to automate an app whose UI is a flat list of named elements."""

    def __init__(self) -> None:
        self.session_id: str | None = None
        self.capabilities: dict[str, Any] = {}
        self.url = "about:blank"
        self.orientation = "PORTRAIT"
        self._elements: dict[str, dict[str, str]] = {}
        self._shut_down = False

    def create_session(
        self,
        capabilities: Mapping[str, Any],
        required_capabilities: Mapping[str, Any] | None = None,
        processed_capabilities: Sequence[Mapping[str, Any]] = (),
    ) -> tuple[str, dict[str, Any]]:
        if self.session_id is not None:
            raise BackendError("Fake driver already has an active session")
        missing = [k for k, v in (required_capabilities or {}).items() if capabilities.get(k) != v]
        if missing:
            raise BackendError(f"Required capabilities were not satisfied: {', '.join(sorted(missing))}")
        self.session_id = str(uuid.uuid4())
        self.capabilities = dict(capabilities)
        return self.session_id, dict(self.capabilities)

    def delete_session(self) -> None:
        if self._shut_down:
            raise BackendError("Cannot shut down fake driver; it has already shut down")
        self._shut_down = True
        self._elements.clear()

    def get_session(self) -> dict[str, Any]:
        return dict(self.capabilities)

    def get_title(self) -> str:
        return str(self.capabilities.get("app", "Fake App"))

    def get_url(self) -> str:
        return self.url

    def set_url(self, url: str) -> None:
        self.url = url

    def get_page_source(self) -> str:
        items = "".join(f"<element id=\"{eid}\" name=\"{el['name']}\"/>" for eid, el in self._elements.items())
        return f"<app>{items}</app>"

    def find_element(self, using: str, value: str) -> dict[str, str]:
        element_id = str(uuid.uuid5(uuid.NAMESPACE_URL, f"{using}:{value}"))
        self._elements.setdefault(element_id, {"name": value, "text": ""})
        return {"ELEMENT": element_id}

    def find_elements(self, using: str, value: str) -> list[dict[str, str]]:
        return [self.find_element(using, value)]

    def _element(self, element_id: str) -> dict[str, str]:
        try:
            return self._elements[element_id]
        except KeyError as exc:
            raise BackendError(f"No such element '{element_id}'") from exc

    def click(self, element_id: str) -> None:
        self._element(element_id)["clicked"] = "true"

    def get_text(self, element_id: str) -> str:
        return self._element(element_id)["text"]

    def set_value(self, element_id: str, text: str | list[str]) -> None:
        if isinstance(text, list):
            text = "".join(text)
        self._element(element_id)["text"] += text

    def get_orientation(self) -> str:
        return self.orientation

    def set_orientation(self, orientation: str) -> None:
        if orientation.upper() not in _ORIENTATIONS:
            raise BackendError(f"Orientation must be one of {', '.join(sorted(_ORIENTATIONS))}")
        self.orientation = orientation.upper()
