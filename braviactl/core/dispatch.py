"""Sequential, paced dispatch of IRCC commands."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Sequence

from braviactl.core.model import SendResult

# Device-native codes are base64 tokens such as "AAAAAQAAAAEAAAAVAw==".
_RAW_CODE_RE = re.compile(r"^AAAA[A-Za-z0-9+/]{13,14}==$")
LOGGER = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[str]]
Transmitter = Callable[[str], Awaitable[None]]


def is_raw_code(code: str) -> bool:
    return bool(_RAW_CODE_RE.match(code))


def normalize_codes(code_or_codes: str | Sequence[str]) -> list[str]:
    if isinstance(code_or_codes, str):
        return [code_or_codes]
    return list(code_or_codes)


class CommandQueue:
    """Send codes one at a time, pausing between deliveries.

    A failure stops the batch; codes already delivered stay delivered.
    """

    def __init__(
        self,
        resolve: Resolver,
        transmit: Transmitter,
        *,
        delay_ms: int,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._resolve = resolve
        self._transmit = transmit
        self._delay_s = max(delay_ms, 0) / 1000
        self._sleep = sleep

    async def run(self, code_or_codes: str | Sequence[str]) -> SendResult:
        codes = normalize_codes(code_or_codes)
        sent: list[str] = []
        for index, code in enumerate(codes):
            raw = code if is_raw_code(code) else await self._resolve(code)
            await self._transmit(raw)
            LOGGER.debug("Sent %s (%s)", code, raw)
            sent.append(raw)
            if index < len(codes) - 1:
                await self._sleep(self._delay_s)
        return SendResult(codes=tuple(sent))
