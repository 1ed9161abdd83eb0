from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable

from fastapi import Depends

from delivery.contact import ContactNotifier
from delivery.email_client import EmailClient, ResendEmailClient
from errors import NotConfiguredError
from persistence.document_store import DocumentStore
from persistence.repositories import AsyncBlobStore, AsyncDocumentStore, build_blob_store, build_transport
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

EmailClientFactory = Callable[[], EmailClient]
DocumentStoreFactory = Callable[[], DocumentStore]


@lru_cache
def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def get_document_store() -> AsyncDocumentStore:
    settings = get_app_settings()
    transport = build_transport(settings)
    return AsyncDocumentStore(DocumentStore(transport, key_prefix=settings.key_prefix))


def get_optional_document_store() -> AsyncDocumentStore | None:
    try:
        return get_document_store()
    except NotConfiguredError as e:
        logger.warning("DIAGNOSTICS: document store unavailable: %s", e)
        return None


@lru_cache
def get_blob_store() -> AsyncBlobStore:
    return AsyncBlobStore(build_blob_store(get_app_settings()))


def get_email_client_factory(settings: Settings = Depends(get_app_settings)) -> EmailClientFactory:
    # Built lazily so a missing API key only matters once a message is sent.
    def _factory() -> EmailClient:
        return ResendEmailClient(settings.email_api_key, api_url=settings.email_api_url)

    return _factory


def get_document_store_factory() -> DocumentStoreFactory:
    # Resolved per call so an unconfigured store only fails once it is used.
    def _factory() -> DocumentStore:
        return get_document_store().sync

    return _factory


def get_contact_notifier(
    store_factory: DocumentStoreFactory = Depends(get_document_store_factory),
    email_client_factory: EmailClientFactory = Depends(get_email_client_factory),
    settings: Settings = Depends(get_app_settings),
) -> ContactNotifier:
    return ContactNotifier(
        store_factory,
        email_client_factory,
        email_from=settings.email_from,
        club_name=settings.club_name,
    )
