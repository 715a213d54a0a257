"""Core data models used across discovery, session, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_PORT = 80
DEFAULT_PSK = "0000"
DEFAULT_REQUEST_TIMEOUT_MS = 5000
DEFAULT_INTER_COMMAND_DELAY_MS = 350
DEFAULT_DISCOVERY_TIMEOUT_MS = 3000


@dataclass(frozen=True)
class SessionConfig:
    host: str
    port: int = DEFAULT_PORT
    psk: str = DEFAULT_PSK
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    inter_command_delay_ms: int = DEFAULT_INTER_COMMAND_DELAY_MS

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/sony"


@dataclass(frozen=True)
class ConnectionDescriptor:
    host: str
    port: int
    friendly_name: str
    manufacturer: str
    manufacturer_url: str
    model_name: str
    udn: str


@dataclass(frozen=True)
class RemoteCall:
    namespace: str
    method: str
    version: str = "1.0"
    params: tuple[Any, ...] = ()

    def to_payload(self, call_id: int) -> dict[str, Any]:
        return {
            "id": call_id,
            "method": self.method,
            "version": self.version,
            "params": list(self.params),
        }


@dataclass(frozen=True)
class IrccCode:
    name: str
    value: str


@dataclass(frozen=True)
class SendResult:
    codes: tuple[str, ...]


@dataclass(frozen=True)
class HttpResponse:
    status: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
