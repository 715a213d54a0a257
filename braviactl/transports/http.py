"""HTTP transport implementation using aiohttp."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from braviactl.core.errors import TransportError, TransportTimeoutError
from braviactl.core.model import HttpResponse

LOGGER = logging.getLogger(__name__)


class AiohttpTransport:
    async def get(self, url: str, *, timeout_s: float) -> HttpResponse:
        return await self._request("GET", url, timeout_s=timeout_s)

    async def post(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout_s: float,
        json: Any | None = None,
        data: str | None = None,
    ) -> HttpResponse:
        return await self._request(
            "POST",
            url,
            timeout_s=timeout_s,
            headers=headers,
            json=json,
            data=data.encode("utf-8") if data is not None else None,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        timeout_s: float,
        headers: dict[str, str] | None = None,
        json: Any | None = None,
        data: bytes | None = None,
    ) -> HttpResponse:
        LOGGER.debug("%s %s", method, url)
        timeout = aiohttp.ClientTimeout(total=timeout_s)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, headers=headers, json=json, data=data) as response:
                    text = await response.text(errors="replace")
                    return HttpResponse(
                        status=response.status,
                        text=text,
                        headers={k: v for k, v in response.headers.items()},
                    )
        except asyncio.TimeoutError as exc:
            raise TransportTimeoutError(f"Request to {url} timed out after {timeout_s:g}s") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc
