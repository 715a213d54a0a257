from __future__ import annotations

import pytest

from braviactl.core.errors import (
    ApplicationError,
    HttpStatusError,
    MalformedResponseError,
    TransportError,
    TransportTimeoutError,
)
from braviactl.core.model import HttpResponse, SessionConfig
from braviactl.core.session import BraviaSession

SOAP_FAULT = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
  <s:Body>
    <s:Fault>
      <faultcode>s:Client</faultcode>
      <faultstring>UPnPError</faultstring>
      <detail>
        <UPnPError xmlns="urn:schemas-upnp-org:control-1-0">
          <errorCode>401</errorCode>
          <errorDescription>Invalid Action</errorDescription>
        </UPnPError>
      </detail>
    </s:Fault>
  </s:Body>
</s:Envelope>"""

SOAP_FAULT_WITHOUT_DETAIL = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">
  <s:Body><s:Fault><faultcode>s:Client</faultcode></s:Fault></s:Body>
</s:Envelope>"""

SOAP_OK = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">
  <s:Body><u:X_SendIRCCResponse xmlns:u="urn:schemas-sony-com:service:IRCC:1"/></s:Body>
</s:Envelope>"""


class ScriptedHttp:
    def __init__(self, response: HttpResponse | Exception) -> None:
        self.response = response
        self.requests: list[dict] = []

    async def get(self, url: str, *, timeout_s: float) -> HttpResponse:
        raise AssertionError("unexpected GET")

    async def post(self, url, *, headers, timeout_s, json=None, data=None) -> HttpResponse:
        self.requests.append({"url": url, "headers": headers, "timeout_s": timeout_s, "json": json})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _session(response: HttpResponse | Exception) -> tuple[BraviaSession, ScriptedHttp]:
    http = ScriptedHttp(response)
    config = SessionConfig(host="tv.local", port=8080, psk="abcd", request_timeout_ms=2500)
    return BraviaSession(config, http=http), http


@pytest.mark.asyncio
async def test_json_request_carries_auth_and_timeout() -> None:
    session, http = _session(HttpResponse(status=200, text='{"result": [{"status": "active"}], "id": 1}'))

    assert await session.system.invoke("getPowerStatus") == {"status": "active"}

    request = http.requests[0]
    assert request["url"] == "http://tv.local:8080/sony/system"
    assert request["headers"] == {"X-Auth-PSK": "abcd"}
    assert request["timeout_s"] == 2.5


@pytest.mark.asyncio
async def test_transport_errors_propagate() -> None:
    session, _ = _session(TransportTimeoutError("timed out"))

    with pytest.raises(TransportError):
        await session.system.invoke("getPowerStatus")


@pytest.mark.asyncio
async def test_non_2xx_is_http_status_error() -> None:
    session, _ = _session(HttpResponse(status=403, text='{"error": [403, "Forbidden"]}'))

    with pytest.raises(HttpStatusError) as exc:
        await session.system.invoke("getPowerStatus")
    assert exc.value.status == 403
    assert exc.value.description == "Forbidden"


@pytest.mark.asyncio
async def test_non_2xx_soap_fault_description_is_kept() -> None:
    session, _ = _session(HttpResponse(status=500, text=SOAP_FAULT))

    with pytest.raises(HttpStatusError) as exc:
        await session.send_ircc("AAAAAQAAAAEAAAAVAw==")
    assert exc.value.status == 500
    assert exc.value.description == "Invalid Action"


@pytest.mark.asyncio
async def test_soap_fault_on_success_status_is_application_error() -> None:
    session, _ = _session(HttpResponse(status=200, text=SOAP_FAULT))

    with pytest.raises(ApplicationError) as exc:
        await session.send_ircc("AAAAAQAAAAEAAAAVAw==")
    assert str(exc.value) == "Invalid Action"


@pytest.mark.asyncio
async def test_unreadable_soap_fault_is_malformed() -> None:
    session, _ = _session(HttpResponse(status=200, text=SOAP_FAULT_WITHOUT_DETAIL))

    with pytest.raises(MalformedResponseError) as exc:
        await session.send_ircc("AAAAAQAAAAEAAAAVAw==")
    assert exc.value.body == SOAP_FAULT_WITHOUT_DETAIL


@pytest.mark.asyncio
async def test_soap_success_returns_body() -> None:
    session, _ = _session(HttpResponse(status=200, text=SOAP_OK))

    await session.send_ircc("AAAAAQAAAAEAAAAVAw==")


@pytest.mark.asyncio
async def test_undecodable_json_is_malformed() -> None:
    session, _ = _session(HttpResponse(status=200, text="<html>not json</html>"))

    with pytest.raises(MalformedResponseError) as exc:
        await session.system.invoke("getPowerStatus")
    assert exc.value.body == "<html>not json</html>"
