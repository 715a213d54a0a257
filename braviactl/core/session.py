"""Device session: connection parameters, RPC namespaces, and IRCC dispatch."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Sequence
from typing import Any

from braviactl.core.discovery import discover
from braviactl.core.dispatch import CommandQueue
from braviactl.core.documents import IRCC_SERVICE_TYPE, extract_soap_fault, parse_xml
from braviactl.core.errors import (
    ApplicationError,
    HttpStatusError,
    MalformedResponseError,
    UnknownCodeError,
    UnknownProtocolError,
)
from braviactl.core.model import HttpResponse, IrccCode, RemoteCall, SendResult, SessionConfig
from braviactl.core.protocol import SERVICE_PROTOCOLS, ServiceProtocol, application_error
from braviactl.transports.base import HttpTransport
from braviactl.transports.http import AiohttpTransport

IRCC_PATH = "/IRCC"
IRCC_SOAP_ACTION = f'"{IRCC_SERVICE_TYPE}#X_SendIRCC"'
IRCC_ENVELOPE = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
  <s:Body>
    <u:X_SendIRCC xmlns:u="{service_type}">
      <IRCCCode>{code}</IRCCCode>
    </u:X_SendIRCC>
  </s:Body>
</s:Envelope>"""
LOGGER = logging.getLogger(__name__)


class BraviaSession:
    """Control session for one device.

    Owns one `ServiceProtocol` per namespace and the memoized IRCC code table.
    Both are populated lazily and live as long as the session.
    """

    discover = staticmethod(discover)

    def __init__(self, config: SessionConfig, *, http: HttpTransport | None = None) -> None:
        self.config = config
        self.http = http or AiohttpTransport()
        self.protocols: dict[str, ServiceProtocol] = {
            name: ServiceProtocol(self, name) for name in SERVICE_PROTOCOLS
        }
        self._codes: list[IrccCode] = []
        self._code_index: dict[str, str] = {}
        self._codes_loaded = False
        self._codes_lock = asyncio.Lock()
        self._call_ids = itertools.count(1)

    @property
    def system(self) -> ServiceProtocol:
        return self.protocols["system"]

    def protocol(self, name: str) -> ServiceProtocol:
        try:
            return self.protocols[name]
        except KeyError:
            available = ", ".join(SERVICE_PROTOCOLS)
            raise UnknownProtocolError(f"Unknown namespace '{name}'. Available: {available}") from None

    async def call(self, call: RemoteCall) -> dict[str, Any]:
        payload = call.to_payload(next(self._call_ids))
        return await self._request(f"/{call.namespace}", payload=payload)

    async def get_ircc_codes(self) -> list[IrccCode]:
        async with self._codes_lock:
            if not self._codes_loaded:
                await self._load_codes()
        return list(self._codes)

    def invalidate_codes(self) -> None:
        self._codes = []
        self._code_index = {}
        self._codes_loaded = False

    async def resolve_code(self, name: str) -> str:
        await self.get_ircc_codes()
        value = self._code_index.get(name)
        if value is None:
            raise UnknownCodeError(name)
        return value

    async def send(self, code_or_codes: str | Sequence[str]) -> SendResult:
        queue = CommandQueue(
            self.resolve_code,
            self.send_ircc,
            delay_ms=self.config.inter_command_delay_ms,
        )
        return await queue.run(code_or_codes)

    async def send_ircc(self, raw_code: str) -> None:
        await self._request(IRCC_PATH, body=IRCC_ENVELOPE.format(service_type=IRCC_SERVICE_TYPE, code=raw_code))

    async def _load_codes(self) -> None:
        reply = await self.system.invoke("getRemoteControllerInfo")
        if not isinstance(reply, list):
            raise MalformedResponseError("Unexpected getRemoteControllerInfo reply", str(reply))

        codes: list[IrccCode] = []
        for entry in reply:
            if not isinstance(entry, dict) or "name" not in entry or "value" not in entry:
                LOGGER.debug("Skipping malformed remote controller entry: %r", entry)
                continue
            codes.append(IrccCode(name=str(entry["name"]), value=str(entry["value"])))

        self._codes = codes
        self._code_index = {code.name: code.value for code in codes}
        self._codes_loaded = True
        LOGGER.info("Loaded %d IRCC code(s) from %s", len(codes), self.config.host)

    async def _request(self, path: str, *, payload: dict[str, Any] | None = None, body: str | None = None) -> Any:
        url = f"{self.config.base_url}{path}"
        timeout_s = self.config.request_timeout_ms / 1000
        headers = {"X-Auth-PSK": self.config.psk}
        if payload is not None:
            response = await self.http.post(url, headers=headers, timeout_s=timeout_s, json=payload)
        else:
            headers.update(
                {
                    "Content-Type": "text/xml; charset=UTF-8",
                    "SOAPACTION": IRCC_SOAP_ACTION,
                }
            )
            response = await self.http.post(url, headers=headers, timeout_s=timeout_s, data=body)

        if not response.ok:
            raise HttpStatusError(response.status, _failure_description(response))

        if payload is not None:
            decoded = _decode_json(response.text)
            if "error" in decoded:
                raise application_error(decoded)
            return decoded

        if not response.text.strip():
            return response.text
        root = parse_xml(response.text)
        if root is None:
            raise MalformedResponseError("Failed to parse the SOAP response", response.text)
        faulted, description = extract_soap_fault(root)
        if faulted:
            if description is None:
                raise MalformedResponseError("Unexpected or malformed error response", response.text)
            raise ApplicationError(description)
        return response.text


def _decode_json(text: str) -> dict[str, Any]:
    try:
        decoded = json.loads(text)
    except ValueError as exc:
        raise MalformedResponseError(f"Failed to parse the JSON response: {exc}", text) from exc
    if not isinstance(decoded, dict):
        raise MalformedResponseError("Expected a JSON object in the response", text)
    return decoded


def _failure_description(response: HttpResponse) -> str | None:
    try:
        decoded = json.loads(response.text)
    except ValueError:
        decoded = None
    if isinstance(decoded, dict):
        error = decoded.get("error")
        if isinstance(error, list) and len(error) > 1:
            return str(error[1])
        return None
    _, description = extract_soap_fault(parse_xml(response.text))
    return description
