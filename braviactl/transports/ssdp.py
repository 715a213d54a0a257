"""SSDP search client built on an asyncio datagram endpoint."""

from __future__ import annotations

import asyncio
import logging
import socket

from braviactl.core.errors import DiscoveryError
from braviactl.transports.base import BeaconCallback

SSDP_ADDRESS = ("239.255.255.250", 1900)
LOGGER = logging.getLogger(__name__)


def build_search_request(service_type: str, mx: int = 1) -> bytes:
    lines = [
        "M-SEARCH * HTTP/1.1",
        f"HOST: {SSDP_ADDRESS[0]}:{SSDP_ADDRESS[1]}",
        'MAN: "ssdp:discover"',
        f"MX: {mx}",
        f"ST: {service_type}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("ascii")


def parse_ssdp_response(data: bytes) -> tuple[int, dict[str, str]] | None:
    """Parse an SSDP answer into its status code and upper-cased headers.

    Returns None for datagrams that are not HTTP responses (for example other
    hosts' M-SEARCH or NOTIFY traffic).
    """
    text = data.decode("utf-8", errors="replace")
    lines = text.split("\r\n") if "\r\n" in text else text.split("\n")
    status_parts = lines[0].split(" ", 2)
    if len(status_parts) < 2 or not status_parts[0].upper().startswith("HTTP/"):
        return None
    try:
        status = int(status_parts[1])
    except ValueError:
        return None

    headers: dict[str, str] = {}
    for line in lines[1:]:
        if not line.strip():
            continue
        name, sep, value = line.partition(":")
        if not sep:
            continue
        headers[name.strip().upper()] = value.strip()
    return status, headers


class _SearchProtocol(asyncio.DatagramProtocol):
    def __init__(self, on_response: BeaconCallback) -> None:
        self._on_response = on_response

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        parsed = parse_ssdp_response(data)
        if parsed is None:
            LOGGER.debug("Ignoring non-response datagram from %s", addr[0])
            return
        status, headers = parsed
        self._on_response(status, headers, addr)

    def error_received(self, exc: Exception) -> None:
        LOGGER.warning("SSDP socket error: %s", exc)


class SSDPClient:
    def __init__(self, *, mx: int = 1, ttl: int = 2) -> None:
        self._mx = mx
        self._ttl = ttl
        self._transport: asyncio.DatagramTransport | None = None

    async def start(self, service_type: str, on_response: BeaconCallback) -> None:
        loop = asyncio.get_running_loop()
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self._ttl)
            sock.bind(("", 0))
            sock.setblocking(False)
        except OSError as exc:
            raise DiscoveryError(f"Could not open SSDP socket: {exc}") from exc

        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _SearchProtocol(on_response),
                sock=sock,
            )
        except OSError as exc:
            sock.close()
            raise DiscoveryError(f"Could not open SSDP endpoint: {exc}") from exc
        self._transport = transport
        try:
            transport.sendto(build_search_request(service_type, self._mx), SSDP_ADDRESS)
        except OSError as exc:
            self.stop()
            raise DiscoveryError(f"Could not send SSDP search: {exc}") from exc
        LOGGER.debug("SSDP search sent for %s", service_type)

    def stop(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None
