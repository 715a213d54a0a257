"""Domain-specific errors for braviactl."""

from __future__ import annotations


class BraviactlError(Exception):
    """Base error for braviactl."""


class ConfigError(BraviactlError):
    """Raised when the configuration file cannot be read or validated."""


class DiscoveryError(BraviactlError):
    """Raised when the SSDP beacon cannot be started."""


class UnknownProtocolError(BraviactlError):
    """Raised when a namespace name is not one the device family exposes."""


class UnknownCodeError(BraviactlError):
    """Raised when a symbolic command name is not reported by the device."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Unknown IRCC code '{code}'")
        self.code = code


class RemoteCallError(BraviactlError):
    """Base error for a failed request against the device."""


class TransportError(RemoteCallError):
    """Raised when the device cannot be reached."""


class TransportTimeoutError(TransportError):
    """Raised when a request exceeds the configured timeout."""


class HttpStatusError(RemoteCallError):
    """Raised on a non-2xx response."""

    def __init__(self, status: int, description: str | None = None) -> None:
        message = f"Device responded with HTTP {status}"
        if description:
            message = f"{message}: {description}"
        super().__init__(message)
        self.status = status
        self.description = description


class ApplicationError(RemoteCallError):
    """Raised when the device reports a fault in an otherwise successful reply."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class MalformedResponseError(RemoteCallError):
    """Raised when a response body cannot be decoded or lacks expected fields."""

    def __init__(self, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body
