from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys
from typing import Any

import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class StepClock:
    """Deterministic clock: every call advances by one second."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


class FakeEmailClient:
    def __init__(self, *, error: Exception | None = None, domains: list[dict[str, Any]] | None = None):
        self.sent: list[Any] = []
        self.error = error
        self.domains = domains or []

    def send(self, message: Any) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return {"id": f"email-{len(self.sent)}"}

    def list_domains(self) -> list[dict[str, Any]]:
        if self.error is not None:
            raise self.error
        return list(self.domains)


@pytest.fixture
def sandbox_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point settings at a temp data dir and drop cached collaborators so tests
    never touch real ./data or real credentials.
    """
    from endpoints import dependencies

    for name in (
        "KV_REST_API_URL",
        "UPSTASH_REDIS_REST_URL",
        "KV_REST_API_TOKEN",
        "UPSTASH_REDIS_REST_TOKEN",
        "RESEND_API_KEY",
        "SENDGRID_API_KEY",
        "BLOB_READ_WRITE_TOKEN",
        "STORAGE_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("APP_ENV", "production")

    dependencies.get_app_settings.cache_clear()
    dependencies.get_document_store.cache_clear()
    dependencies.get_blob_store.cache_clear()
    yield tmp_path
    dependencies.get_app_settings.cache_clear()
    dependencies.get_document_store.cache_clear()
    dependencies.get_blob_store.cache_clear()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def memory_transport():
    from persistence.transport import InMemoryKeyValueTransport

    return InMemoryKeyValueTransport()


@pytest.fixture
def store(memory_transport, clock):
    from persistence.document_store import DocumentStore

    return DocumentStore(memory_transport, key_prefix="walk4health", clock=clock)


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def api_client(sandbox_env: Path, store, email_client):
    from fastapi.testclient import TestClient

    import app as app_module
    from endpoints import dependencies
    from persistence.blob_store import DiskBlobStore
    from persistence.repositories import AsyncBlobStore, AsyncDocumentStore

    app = app_module.create_app()
    async_store = AsyncDocumentStore(store)
    app.dependency_overrides[dependencies.get_document_store] = lambda: async_store
    app.dependency_overrides[dependencies.get_optional_document_store] = lambda: async_store
    app.dependency_overrides[dependencies.get_document_store_factory] = lambda: (lambda: store)
    app.dependency_overrides[dependencies.get_email_client_factory] = lambda: (lambda: email_client)
    app.dependency_overrides[dependencies.get_blob_store] = lambda: AsyncBlobStore(
        DiskBlobStore(sandbox_env / "uploads")
    )
    return TestClient(app)


@pytest.fixture
def make_email_client():
    return FakeEmailClient
