from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from errors import NotConfiguredError, TransportError

from .disk_store import DiskJsonDocument
from .interfaces import Absent, Found, KeyValueTransport, RemoteReadOutcome, TransportFailure

logger = logging.getLogger(__name__)


def _normalize_result(payload: Any) -> RemoteReadOutcome:
    # Upstash wraps values as {"result": ...}; other providers return the value flat.
    if isinstance(payload, dict) and "result" in payload:
        value = payload["result"]
    else:
        value = payload
    if value is None:
        return Absent()
    if isinstance(value, str):
        return Found(value)
    return Found(json.dumps(value))


class RestKeyValueTransport(KeyValueTransport):
    """
    Redis-over-REST transport (Upstash / Vercel KV wire shape).

    - GET  {base}/get/{key}
    - POST {base}/set/{key}  (request body is the raw value)

    One request per call: no retries, and the client's default timeout.
    """

    def __init__(self, base_url: str, token: str, *, client: httpx.Client | None = None):
        if not base_url or not token:
            raise NotConfiguredError("Remote key-value store", "Redis environment variables not set")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = client or httpx.Client()

    def _url(self, op: str, key: str) -> str:
        return f"{self._base_url}/{op}/{quote(key, safe=':')}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def get(self, key: str) -> RemoteReadOutcome:
        try:
            resp = self._client.get(self._url("get", key), headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("KV GET %s: request failed: %r", key, e)
            return TransportFailure(status=None, body=repr(e))

        if not resp.is_success:
            return TransportFailure(status=resp.status_code, body=resp.text)

        if not resp.text.strip():
            return Absent()
        try:
            payload = resp.json()
        except ValueError:
            # Non-JSON body: the body itself is the stored value.
            return Found(resp.text)
        return _normalize_result(payload)

    def set(self, key: str, raw: str) -> None:
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        try:
            resp = self._client.post(self._url("set", key), headers=headers, content=raw.encode("utf-8"))
        except httpx.HTTPError as e:
            raise TransportError(f"KV SET {key} failed: {e!r}", body=repr(e)) from e

        if not resp.is_success:
            raise TransportError(
                f"KV SET {key} failed: {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )

    def close(self) -> None:
        self._client.close()


class DiskKeyValueTransport(KeyValueTransport):
    """
    Local-filesystem transport: one JSON file per key under `directory`.
    """

    def __init__(self, directory: Path):
        self._directory = directory

    def _store(self, key: str) -> DiskJsonDocument:
        return DiskJsonDocument(self._directory / f"{quote(key, safe='')}.json")

    def get(self, key: str) -> RemoteReadOutcome:
        doc = self._store(key).load()
        value = doc.get("value")
        if not isinstance(value, str):
            return Absent()
        return Found(value)

    def set(self, key: str, raw: str) -> None:
        try:
            self._store(key).save({"key": key, "value": raw})
        except OSError as e:
            raise TransportError(f"Disk SET {key} failed: {e!r}", body=repr(e)) from e


class InMemoryKeyValueTransport(KeyValueTransport):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> RemoteReadOutcome:
        with self._lock:
            raw = self._values.get(key)
        return Absent() if raw is None else Found(raw)

    def set(self, key: str, raw: str) -> None:
        with self._lock:
            self._values[key] = raw

    def dump(self) -> dict[str, str]:
        with self._lock:
            return dict(self._values)
