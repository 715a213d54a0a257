from __future__ import annotations

import asyncio
import json

import pytest

from braviactl.core.errors import ApplicationError, MalformedResponseError
from braviactl.core.model import HttpResponse, SessionConfig
from braviactl.core.protocol import SERVICE_PROTOCOLS, normalize_response
from braviactl.core.session import BraviaSession


class FakeHttp:
    def __init__(self, replies: dict[str, object]) -> None:
        self.replies = replies
        self.calls: list[tuple[str, dict]] = []

    async def get(self, url: str, *, timeout_s: float) -> HttpResponse:
        raise AssertionError("unexpected GET")

    async def post(self, url, *, headers, timeout_s, json=None, data=None) -> HttpResponse:
        self.calls.append((url, json))
        reply = self.replies[json["method"]]
        if callable(reply):
            reply = reply(json)
        return HttpResponse(status=200, text=_dumps(reply))


def _dumps(value: object) -> str:
    return json.dumps(value)


def _session(http: FakeHttp) -> BraviaSession:
    return BraviaSession(SessionConfig(host="10.0.0.5", psk="1234"), http=http)


def test_normalize_results_returned_verbatim() -> None:
    assert normalize_response({"results": [1, 2]}) == [1, 2]


def test_normalize_single_result() -> None:
    assert normalize_response({"result": [1]}) == 1


def test_normalize_paired_result_uses_second_element() -> None:
    assert normalize_response({"result": [1, 2]}) == 2


def test_normalize_empty_body_is_void() -> None:
    assert normalize_response({}) is None


def test_normalize_error_carries_message() -> None:
    with pytest.raises(ApplicationError) as exc:
        normalize_response({"error": [7, "bad"]})
    assert str(exc.value) == "bad"
    assert exc.value.code == 7


def test_normalize_unreadable_error_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        normalize_response({"error": "bad"})


def test_session_exposes_every_namespace() -> None:
    session = _session(FakeHttp({}))
    assert tuple(session.protocols) == SERVICE_PROTOCOLS
    assert session.protocol("audio").name == "audio"
    assert session.protocols["system"].session is session


@pytest.mark.asyncio
async def test_invoke_wraps_params_and_targets_namespace_path() -> None:
    http = FakeHttp({"setAudioVolume": {"result": []}, "getVolumeInformation": {"result": [[{"volume": 12}]]}})
    audio = _session(http).protocol("audio")

    assert await audio.invoke("setAudioVolume", "1.0", {"target": "speaker", "volume": "15"}) is None
    assert await audio.invoke("getVolumeInformation") == [{"volume": 12}]

    url, payload = http.calls[0]
    assert url == "http://10.0.0.5:80/sony/audio"
    assert payload["method"] == "setAudioVolume"
    assert payload["version"] == "1.0"
    assert payload["params"] == [{"target": "speaker", "volume": "15"}]
    assert http.calls[1][1]["params"] == []
    assert http.calls[1][1]["id"] == http.calls[0][1]["id"] + 1


@pytest.mark.asyncio
async def test_invoke_surfaces_device_error_message() -> None:
    http = FakeHttp({"getPowerStatus": {"error": [403, "Forbidden"], "id": 1}})
    system = _session(http).protocol("system")

    with pytest.raises(ApplicationError) as exc:
        await system.invoke("getPowerStatus")
    assert str(exc.value) == "Forbidden"


@pytest.mark.asyncio
async def test_get_method_types_populates_once_in_version_order() -> None:
    def method_types(payload: dict) -> dict:
        version = payload["params"][0]
        return {"results": [[f"method-{version}", [], [], version]]}

    http = FakeHttp(
        {
            "getVersions": {"result": [["1.0", "1.1", "1.2"]]},
            "getMethodTypes": method_types,
        }
    )
    system = _session(http).protocol("system")

    table = await system.get_method_types()
    again = await system.get_method_types()
    only = await system.get_method_types("1.1")

    assert list(table) == ["1.0", "1.1", "1.2"]
    assert table == again
    assert only == {"1.1": [["method-1.1", [], [], "1.1"]]}
    assert await system.get_method_types("9.9") == {}

    methods = [(payload["method"], payload["params"]) for _, payload in http.calls]
    assert methods == [
        ("getVersions", []),
        ("getMethodTypes", ["1.0"]),
        ("getMethodTypes", ["1.1"]),
        ("getMethodTypes", ["1.2"]),
    ]
    assert all(payload["version"] == "1.0" for _, payload in http.calls)


@pytest.mark.asyncio
async def test_get_method_types_with_no_versions_is_empty() -> None:
    http = FakeHttp({"getVersions": {"result": [[]]}})
    guide = _session(http).protocol("guide")

    assert await guide.get_method_types() == {}
    assert await guide.get_method_types() == {}
    assert len(http.calls) == 1


@pytest.mark.asyncio
async def test_concurrent_method_type_requests_share_population() -> None:
    http = FakeHttp(
        {
            "getVersions": {"result": [["1.0"]]},
            "getMethodTypes": {"results": [["getPowerStatus", [], ["{\"status\":\"string\"}"], "1.0"]]},
        }
    )
    system = _session(http).protocol("system")

    first, second = await asyncio.gather(system.get_method_types(), system.get_method_types())

    assert first == second
    assert len(http.calls) == 2


@pytest.mark.asyncio
async def test_invalidate_forces_repopulation() -> None:
    http = FakeHttp({"getVersions": {"result": [["1.0"]]}, "getMethodTypes": {"results": []}})
    system = _session(http).protocol("system")

    await system.get_method_types()
    system.invalidate()
    await system.get_method_types()

    assert [payload["method"] for _, payload in http.calls].count("getVersions") == 2
