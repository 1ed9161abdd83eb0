from __future__ import annotations

import json

import httpx
import pytest

from errors import NotConfiguredError, TransportError
from persistence.interfaces import Absent, Found, TransportFailure
from persistence.transport import DiskKeyValueTransport, InMemoryKeyValueTransport, RestKeyValueTransport


def _rest(handler) -> RestKeyValueTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RestKeyValueTransport("https://kv.example.com/", "secret-token", client=client)


def test_rest_get_unwraps_result_envelope():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json={"result": '{"recurringEvents": []}'})

    outcome = _rest(handler).get("walk4health:events")
    assert outcome == Found('{"recurringEvents": []}')
    assert seen["url"] == "https://kv.example.com/get/walk4health:events"
    assert seen["auth"] == "Bearer secret-token"


def test_rest_get_null_result_is_absent():
    outcome = _rest(lambda request: httpx.Response(200, json={"result": None})).get("k")
    assert outcome == Absent()


def test_rest_get_flattened_body_is_reserialized():
    outcome = _rest(lambda request: httpx.Response(200, json={"links": []})).get("k")
    assert isinstance(outcome, Found)
    assert json.loads(outcome.raw) == {"links": []}


def test_rest_get_failures_are_returned_not_raised():
    outcome = _rest(lambda request: httpx.Response(401, text="unauthorized")).get("k")
    assert outcome == TransportFailure(status=401, body="unauthorized")

    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    outcome = _rest(boom).get("k")
    assert isinstance(outcome, TransportFailure)
    assert outcome.status is None


def test_rest_set_posts_raw_body_once():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"result": "OK"})

    _rest(handler).set("walk4health:news", '{"newsItems": []}')
    assert len(calls) == 1
    assert calls[0].method == "POST"
    assert str(calls[0].url) == "https://kv.example.com/set/walk4health:news"
    assert calls[0].content == b'{"newsItems": []}'


def test_rest_set_failure_raises_with_status_and_body():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="ERR max requests")

    with pytest.raises(TransportError) as excinfo:
        _rest(handler).set("k", "{}")
    assert excinfo.value.status == 500
    assert excinfo.value.body == "ERR max requests"
    # no retries
    assert len(calls) == 1


def test_rest_transport_requires_url_and_token():
    with pytest.raises(NotConfiguredError):
        RestKeyValueTransport("", "token")
    with pytest.raises(NotConfiguredError):
        RestKeyValueTransport("https://kv.example.com", "")


def test_disk_transport_roundtrip(tmp_path):
    transport = DiskKeyValueTransport(tmp_path / "kv")
    assert transport.get("walk4health:content") == Absent()

    transport.set("walk4health:content", '{"clubDescription": "x"}')
    assert transport.get("walk4health:content") == Found('{"clubDescription": "x"}')
    # one file per key, key made filesystem-safe
    assert [p.name for p in (tmp_path / "kv").iterdir()] == ["walk4health%3Acontent.json"]


def test_memory_transport_roundtrip():
    transport = InMemoryKeyValueTransport()
    assert transport.get("k") == Absent()
    transport.set("k", "[]")
    assert transport.get("k") == Found("[]")
    assert transport.dump() == {"k": "[]"}
