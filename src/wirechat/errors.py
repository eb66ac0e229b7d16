"""Exception hierarchy shared across client components."""

from __future__ import annotations


class WirechatError(Exception):
    """Base class for client errors."""


class EventDecodeError(WirechatError):
    """Raised when an inbound frame is not a JSON object."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"Invalid event frame: {raw!r}")
        self.raw = raw


class GatewayRequestError(WirechatError):
    """Raised when a gateway REST call fails or returns an unusable body."""

    def __init__(self, path: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message
        self.status_code = status_code
