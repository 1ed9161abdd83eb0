from __future__ import annotations

from .document_store import DocumentStore
from .interfaces import Absent, Found, KeyValueTransport, RemoteReadOutcome, TransportFailure
from .list_ops import Delete, Insert, ListOp, Update
from .repositories import AsyncBlobStore, AsyncDocumentStore, build_blob_store, build_transport
from .resources import CONTENT, EMAIL_CONFIG, EVENTS, GALLERIES, LINKS, NEWS, RESOURCES, Resource
from .transport import DiskKeyValueTransport, InMemoryKeyValueTransport, RestKeyValueTransport

__all__ = [
    "DocumentStore",
    "AsyncDocumentStore",
    "AsyncBlobStore",
    "build_transport",
    "build_blob_store",
    "KeyValueTransport",
    "RemoteReadOutcome",
    "Found",
    "Absent",
    "TransportFailure",
    "RestKeyValueTransport",
    "DiskKeyValueTransport",
    "InMemoryKeyValueTransport",
    "Insert",
    "Update",
    "Delete",
    "ListOp",
    "Resource",
    "RESOURCES",
    "CONTENT",
    "EVENTS",
    "GALLERIES",
    "LINKS",
    "NEWS",
    "EMAIL_CONFIG",
]
