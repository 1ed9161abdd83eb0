from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable

from persistence.disk_store import DiskJsonDocument, MemoryJsonDocument
from persistence.interfaces import JsonDocumentFile


class LocalCache:
    """
    Caller-side copy of documents, keyed by resource name.

    Visible only to the process (or browser tab) that owns it, so it is a
    development convenience and never a source of truth. Entries older than
    `max_age_seconds` are stale and ignored.

    Stored shape:
      { "<resource>": { "document": ..., "cachedAt": <epoch seconds> } }
    """

    def __init__(
        self,
        document: JsonDocumentFile | None = None,
        *,
        max_age_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._doc = document if document is not None else MemoryJsonDocument()
        self._max_age_seconds = max_age_seconds
        self._clock = clock

    @classmethod
    def on_disk(cls, path: Path, **kwargs: Any) -> "LocalCache":
        return cls(DiskJsonDocument(path), **kwargs)

    def _is_fresh(self, cached_at: Any) -> bool:
        if self._max_age_seconds is None:
            return True
        if not isinstance(cached_at, (int, float)):
            return False
        return self._clock() - cached_at <= self._max_age_seconds

    def get(self, name: str) -> Any | None:
        entry = self._doc.load().get(name)
        if not isinstance(entry, dict) or "document" not in entry:
            return None
        if not self._is_fresh(entry.get("cachedAt")):
            return None
        return entry["document"]

    def put(self, name: str, document: Any) -> None:
        data = self._doc.load()
        data[name] = {"document": document, "cachedAt": self._clock()}
        self._doc.save(data)

    def clear(self, name: str | None = None) -> None:
        if name is None:
            self._doc.save({})
            return
        data = self._doc.load()
        data.pop(name, None)
        self._doc.save(data)
