"""SSDP discovery of IRCC-capable devices."""

from __future__ import annotations

import asyncio
import logging

from braviactl.core.documents import (
    IRCC_SERVICE_TYPE,
    STATUS_MALFORMED,
    STATUS_OK,
    parse_device_description,
)
from braviactl.core.errors import TransportError
from braviactl.core.model import DEFAULT_DISCOVERY_TIMEOUT_MS, ConnectionDescriptor
from braviactl.transports.base import BeaconClient, HttpTransport
from braviactl.transports.http import AiohttpTransport
from braviactl.transports.ssdp import SSDPClient

LOGGER = logging.getLogger(__name__)


async def discover(
    timeout_ms: int = DEFAULT_DISCOVERY_TIMEOUT_MS,
    *,
    beacon: BeaconClient | None = None,
    http: HttpTransport | None = None,
    service_type: str = IRCC_SERVICE_TYPE,
) -> list[ConnectionDescriptor]:
    """Collect every device answering the search within the window.

    The call always lasts the full window. Answers that cannot be fetched or
    parsed are logged and skipped; an empty list means nothing matched.
    """
    beacon = beacon or SSDPClient()
    http = http or AiohttpTransport()
    window_s = max(timeout_ms, 0) / 1000
    loop = asyncio.get_running_loop()

    discovered: list[ConnectionDescriptor] = []
    seen: set[str] = set()
    pending: set[asyncio.Task[None]] = set()

    async def describe(location: str, address: str) -> None:
        try:
            response = await http.get(location, timeout_s=window_s)
        except TransportError as exc:
            LOGGER.warning("Error retrieving the description for device %s: %s", address, exc)
            return
        if response.status != 200:
            LOGGER.warning(
                "Error retrieving the description for device %s: HTTP %d", address, response.status
            )
            return

        outcome = parse_device_description(response.text, service_type)
        if outcome.status == STATUS_OK and outcome.descriptor is not None:
            if outcome.descriptor.udn in seen:
                return
            seen.add(outcome.descriptor.udn)
            discovered.append(outcome.descriptor)
            LOGGER.debug("Discovered %s at %s", outcome.descriptor.friendly_name, address)
        elif outcome.status == STATUS_MALFORMED:
            LOGGER.warning("Malformed description from %s (%s): %s", address, location, outcome.detail)
        else:
            LOGGER.debug("Skipping %s: %s", address, outcome.status)

    def on_response(status: int, headers: dict[str, str], addr: tuple[str, int]) -> None:
        if status != 200:
            LOGGER.debug("Ignoring SSDP answer with status %d from %s", status, addr[0])
            return
        location = headers.get("LOCATION")
        if not location:
            LOGGER.debug("Ignoring SSDP answer without LOCATION from %s", addr[0])
            return
        task = loop.create_task(describe(location, addr[0]))
        pending.add(task)
        task.add_done_callback(pending.discard)

    await beacon.start(service_type, on_response)
    try:
        await asyncio.sleep(window_s)
    finally:
        beacon.stop()
        outstanding = list(pending)
        for task in outstanding:
            task.cancel()
        if outstanding:
            await asyncio.gather(*outstanding, return_exceptions=True)

    return list(discovered)
