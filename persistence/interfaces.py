from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union


@dataclass(frozen=True)
class Found:
    raw: str


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class TransportFailure:
    status: int | None
    body: str


RemoteReadOutcome = Union[Found, Absent, TransportFailure]


class KeyValueTransport(Protocol):
    """
    Single-attempt access to a string-valued key-value store.
    """

    def get(self, key: str) -> RemoteReadOutcome:
        """Read one key. Failures are returned, never raised."""
        ...

    def set(self, key: str, raw: str) -> None:
        """Write one key all-or-nothing; raises TransportError on failure."""
        ...


class JsonDocumentFile(Protocol):
    """
    A single JSON object persisted as a whole.
    """

    def load(self) -> dict[str, Any]:
        """Load and return the full document (never None)."""
        ...

    def save(self, doc: dict[str, Any]) -> None:
        """Persist the full document atomically."""
        ...
