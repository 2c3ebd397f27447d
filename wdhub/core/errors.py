"""Domain-specific errors for wdhub."""


class HubError(Exception):
    """Base error for wdhub."""


class ConfigError(HubError):
    """Raised when the broker configuration file is missing or invalid."""


class BackendValidationError(HubError):
    """Raised when a backend descriptor does not conform to schema or semantics."""


class BackendLoadError(HubError):
    """Raised when reading descriptors or importing a backend factory fails."""


class CapabilityError(HubError):
    """Base error for capability validation and matching."""


class MissingRequiredCapability(CapabilityError):
    """Raised when desired capabilities lack a mandatory key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"You must include a '{key}' capability")
        self.key = key


class NoMatchingBackend(CapabilityError):
    """Raised when no registered backend accepts the effective capabilities."""


class MalformedCapabilities(CapabilityError):
    """Raised when a capabilities payload does not have the expected shape."""


class SessionNotFound(HubError):
    """Raised when a session id is not registered."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session '{session_id}' does not exist or has already been deleted")
        self.session_id = session_id


class SessionIdConflict(HubError):
    """Raised when a backend hands out an id that is already registered."""


class BackendError(HubError):
    """Raised by bundled backends for backend-side failures."""
