from __future__ import annotations

import copy
import threading
from pathlib import Path
from typing import Any

from json_store import atomic_write_json, read_json

from .interfaces import JsonDocumentFile


class FileLocks:
    """One lock per resolved path, so writers to different keys never contend."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._by_path: dict[str, threading.Lock] = {}

    def for_path(self, path: Path) -> threading.Lock:
        with self._guard:
            return self._by_path.setdefault(str(path.resolve()), threading.Lock())


FILE_LOCKS = FileLocks()


class DiskJsonDocument(JsonDocumentFile):
    """
    A JSON object kept in one file: a stored KV entry or the local cache.

    Unreadable or non-object content loads as `{}`.
    """

    def __init__(self, path: Path):
        self._path = path

    def load(self) -> dict[str, Any]:
        with FILE_LOCKS.for_path(self._path):
            raw = read_json(self._path)
        return raw if isinstance(raw, dict) else {}

    def save(self, doc: dict[str, Any]) -> None:
        with FILE_LOCKS.for_path(self._path):
            atomic_write_json(self._path, doc)


class MemoryJsonDocument(JsonDocumentFile):
    def __init__(self, doc: dict[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._doc: dict[str, Any] = copy.deepcopy(doc or {})

    def load(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._doc)

    def save(self, doc: dict[str, Any]) -> None:
        with self._lock:
            self._doc = copy.deepcopy(doc)
