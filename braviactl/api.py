"""Stable public API for building tooling on top of braviactl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from braviactl.core.config import LoadedConfig, load_config, resolve_profile
from braviactl.core.discovery import discover
from braviactl.core.dispatch import is_raw_code
from braviactl.core.errors import (
    ApplicationError,
    BraviactlError,
    ConfigError,
    DiscoveryError,
    HttpStatusError,
    MalformedResponseError,
    RemoteCallError,
    TransportError,
    TransportTimeoutError,
    UnknownCodeError,
    UnknownProtocolError,
)
from braviactl.core.model import (
    ConnectionDescriptor,
    HttpResponse,
    IrccCode,
    RemoteCall,
    SendResult,
    SessionConfig,
)
from braviactl.core.protocol import SERVICE_PROTOCOLS, ServiceProtocol
from braviactl.core.session import BraviaSession
from braviactl.transports.base import BeaconClient, HttpTransport
from braviactl.transports.http import AiohttpTransport
from braviactl.transports.ssdp import SSDPClient

__all__ = [
    "BraviactlError",
    "ConfigError",
    "DiscoveryError",
    "UnknownCodeError",
    "UnknownProtocolError",
    "RemoteCallError",
    "TransportError",
    "TransportTimeoutError",
    "HttpStatusError",
    "ApplicationError",
    "MalformedResponseError",
    "ConnectionDescriptor",
    "HttpResponse",
    "IrccCode",
    "RemoteCall",
    "SendResult",
    "SessionConfig",
    "LoadedConfig",
    "SERVICE_PROTOCOLS",
    "ServiceProtocol",
    "BraviaSession",
    "HttpTransport",
    "BeaconClient",
    "AiohttpTransport",
    "SSDPClient",
    "discover",
    "is_raw_code",
    "load_config",
    "resolve_profile",
    "connect",
]


def connect(profile: str | None = None, *, http: HttpTransport | None = None) -> BraviaSession:
    """Build a session for a profile from the user's config file.

    Without a profile name the config's ``default`` (or its only device) is used.
    """
    return BraviaSession(resolve_profile(profile), http=http)
