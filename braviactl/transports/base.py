"""Transport interfaces."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from braviactl.core.model import HttpResponse

BeaconCallback = Callable[[int, dict[str, str], tuple[str, int]], None]


class HttpTransport(Protocol):
    async def get(self, url: str, *, timeout_s: float) -> HttpResponse:
        """Fetch a document."""

    async def post(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout_s: float,
        json: Any | None = None,
        data: str | None = None,
    ) -> HttpResponse:
        """Post a JSON or raw body and return the device response."""


class BeaconClient(Protocol):
    async def start(self, service_type: str, on_response: BeaconCallback) -> None:
        """Issue a search and report each answer until stopped."""

    def stop(self) -> None:
        """Stop listening for answers."""
