from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from errors import NotConfiguredError
from settings import Settings

from .blob_store import BlobStore, DiskBlobStore, StoredBlob, VercelBlobStore
from .document_store import DocumentStore
from .interfaces import KeyValueTransport, RemoteReadOutcome
from .list_ops import ListOp
from .paths import kv_dir, uploads_dir
from .resources import Resource
from .transport import DiskKeyValueTransport, InMemoryKeyValueTransport, RestKeyValueTransport

logger = logging.getLogger(__name__)


def build_transport(settings: Settings) -> KeyValueTransport:
    backend = settings.storage_backend
    if backend == "rest":
        return RestKeyValueTransport(settings.kv_rest_url, settings.kv_rest_token)
    if backend == "disk":
        logger.info("STORE: using disk backend at %s", settings.data_dir)
        return DiskKeyValueTransport(kv_dir(settings.data_dir))
    if backend == "memory":
        logger.warning("STORE: using in-memory backend; data resets on restart")
        return InMemoryKeyValueTransport()
    raise NotConfiguredError("Storage backend", f"Unknown STORAGE_BACKEND {backend!r}")


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_token:
        return VercelBlobStore(settings.blob_token, api_url=settings.blob_api_url)
    if not settings.is_production:
        return DiskBlobStore(uploads_dir(settings.data_dir))
    raise NotConfiguredError("Blob storage", "BLOB_READ_WRITE_TOKEN not set")


class AsyncDocumentStore:
    """
    Async wrapper around DocumentStore.
    Uses asyncio.to_thread to avoid blocking the event loop on store I/O.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @property
    def sync(self) -> DocumentStore:
        return self._store

    async def read(self, resource: Resource) -> Any:
        return await asyncio.to_thread(self._store.read, resource)

    async def write(self, resource: Resource, payload: Any) -> Any:
        return await asyncio.to_thread(self._store.write, resource, payload)

    async def list_mutate(self, resource: Resource, op: ListOp) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._store.list_mutate, resource, op)

    async def insert(self, resource: Resource, item: Mapping[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._store.insert, resource, item)

    async def update(self, resource: Resource, item_id: str, patch: Mapping[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._store.update, resource, item_id, patch)

    async def delete(self, resource: Resource, item_id: str) -> None:
        await asyncio.to_thread(self._store.delete, resource, item_id)

    async def raw_outcome(self, resource: Resource) -> RemoteReadOutcome:
        return await asyncio.to_thread(self._store.raw_outcome, resource)


class AsyncBlobStore:
    def __init__(self, store: BlobStore) -> None:
        self._store = store

    async def put(self, pathname: str, content: bytes, content_type: str) -> StoredBlob:
        return await asyncio.to_thread(self._store.put, pathname, content, content_type)
