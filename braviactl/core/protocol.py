"""Versioned JSON-RPC namespaces exposed under ``/sony/{namespace}``."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from braviactl.core.errors import ApplicationError, MalformedResponseError
from braviactl.core.model import RemoteCall

if TYPE_CHECKING:
    from braviactl.core.session import BraviaSession

SERVICE_PROTOCOLS = (
    "accessControl",
    "appControl",
    "audio",
    "avContent",
    "browser",
    "cec",
    "encryption",
    "guide",
    "recording",
    "system",
    "videoScreen",
)
LOGGER = logging.getLogger(__name__)


def normalize_response(body: dict[str, Any]) -> Any:
    """Reduce a JSON-RPC reply to its meaningful value.

    ``results`` is returned verbatim. ``result`` carries either a single
    element or a pair whose second element is the payload. A reply with
    neither field is a void success.
    """
    if "error" in body:
        raise application_error(body)
    if "results" in body:
        return body["results"]
    if "result" in body:
        result = body["result"]
        if not isinstance(result, list):
            raise MalformedResponseError(f"Expected 'result' to be a list, got {type(result).__name__}", str(body))
        if not result:
            return None
        return result[1] if len(result) > 1 else result[0]
    return None


def application_error(body: dict[str, Any]) -> Exception:
    error = body.get("error")
    if isinstance(error, list) and len(error) > 1:
        code = error[0] if isinstance(error[0], int) else None
        return ApplicationError(str(error[1]), code=code)
    return MalformedResponseError("Unexpected or malformed error response", str(body))


class ServiceProtocol:
    def __init__(self, session: BraviaSession, name: str) -> None:
        self.session = session
        self.name = name
        self._methods: dict[str, list[Any]] = {}
        self._populated = False
        self._lock = asyncio.Lock()

    @property
    def path(self) -> str:
        return f"/{self.name}"

    async def invoke(self, method: str, version: str = "1.0", params: Any | None = None) -> Any:
        call = RemoteCall(
            namespace=self.name,
            method=method,
            version=version,
            params=(params,) if params is not None else (),
        )
        body = await self.session.call(call)
        return normalize_response(body)

    async def get_versions(self) -> list[str]:
        versions = await self.invoke("getVersions")
        if versions is None:
            return []
        if not isinstance(versions, list):
            raise MalformedResponseError(f"Unexpected getVersions reply for {self.name}", str(versions))
        return [str(v) for v in versions]

    async def get_method_types(self, version: str | None = None) -> dict[str, list[Any]]:
        async with self._lock:
            if not self._populated:
                await self._populate_methods()

        if version is not None:
            return {version: self._methods[version]} if version in self._methods else {}
        return dict(self._methods)

    async def _populate_methods(self) -> None:
        versions = await self.get_versions()
        methods: dict[str, list[Any]] = {}
        for version in versions:
            methods[version] = await self.invoke("getMethodTypes", "1.0", version) or []
        self._methods = methods
        self._populated = True
        LOGGER.info("Loaded %d method version(s) for %s", len(methods), self.name)

    def invalidate(self) -> None:
        self._methods = {}
        self._populated = False
