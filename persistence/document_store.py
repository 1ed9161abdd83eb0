from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from errors import DecodeError, TransportError, ValidationError

from . import codec
from .documents import iso_timestamp
from .interfaces import Absent, Found, KeyValueTransport, RemoteReadOutcome, TransportFailure
from .list_ops import Delete, Insert, ListOp, Update, apply_list_op
from .resources import Resource

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validation_error_from(exc: PydanticValidationError, *, label: str) -> ValidationError:
    fields: list[str] = []
    problems: list[str] = []
    missing = False
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        if loc and loc not in fields:
            fields.append(loc)
        missing = missing or err.get("type") == "missing"
        problems.append(f"{loc or label}: {err.get('msg')}")
    headline = "Missing required fields" if missing else f"Invalid {label}"
    return ValidationError(f"{headline} ({'; '.join(problems)})", fields=fields)


class DocumentStore:
    """
    Whole-document reads and writes over a KeyValueTransport.

    - read() never fails: absent, unreachable or malformed values give the
      resource default.
    - write() validates before any transport call and stamps `lastUpdated`.
    - list_mutate() is read-modify-write with last-writer-wins; two
      concurrent mutations of the same collection can lose one update.
    """

    def __init__(
        self,
        transport: KeyValueTransport,
        *,
        key_prefix: str = "walk4health",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._transport = transport
        self._key_prefix = key_prefix
        self._clock = clock

    @property
    def transport(self) -> KeyValueTransport:
        return self._transport

    def key_for(self, resource: Resource) -> str:
        return resource.key(self._key_prefix)

    def _decode(self, resource: Resource, raw: str) -> Any:
        doc = codec.decode(raw)
        try:
            if resource.from_store is not None:
                return resource.from_store(doc)
            return resource.adapter.validate_python(doc)
        except PydanticValidationError as e:
            raise DecodeError(f"Stored {resource.name} does not match its schema: {e}") from e

    def _validate(self, resource: Resource, payload: Any) -> Any:
        try:
            return resource.adapter.validate_python(payload)
        except PydanticValidationError as e:
            raise validation_error_from(e, label=resource.name) from e

    def read(self, resource: Resource) -> Any:
        key = self.key_for(resource)
        outcome = self._transport.get(key)
        if isinstance(outcome, Absent):
            return resource.default()
        if isinstance(outcome, TransportFailure):
            logger.warning("READ %s: transport failure status=%s body=%s", key, outcome.status, outcome.body[:200])
            return resource.default()
        try:
            return self._decode(resource, outcome.raw)
        except DecodeError as e:
            logger.warning("READ %s: %s; serving default", key, e)
            return resource.default()

    def _read_strict(self, resource: Resource) -> Any:
        key = self.key_for(resource)
        outcome = self._transport.get(key)
        if isinstance(outcome, TransportFailure):
            raise TransportError(
                f"KV GET {key} failed: {outcome.status}",
                status=outcome.status,
                body=outcome.body,
            )
        if isinstance(outcome, Found):
            return self._decode(resource, outcome.raw)
        return resource.default()

    def _store(self, resource: Resource, document: Any) -> None:
        key = self.key_for(resource)
        try:
            self._transport.set(key, codec.encode(document))
        except TransportError as e:
            logger.error("WRITE %s: failed status=%s body=%s", key, e.status, e.body[:200])
            raise

    def write(self, resource: Resource, payload: Any) -> Any:
        document = self._validate(resource, payload)
        if resource.stamp_last_updated and isinstance(document, BaseModel):
            document = document.model_copy(update={"lastUpdated": iso_timestamp(self._clock())})
        self._store(resource, document)
        return document

    def _prepare_op(self, resource: Resource, op: ListOp) -> ListOp:
        if isinstance(op, Insert) and resource.draft_model is not None:
            try:
                draft = resource.draft_model.model_validate(dict(op.item))
            except PydanticValidationError as e:
                raise validation_error_from(e, label=resource.name) from e
            return Insert(draft.model_dump(mode="json"))
        if isinstance(op, Update) and resource.patch_model is not None:
            try:
                patch = resource.patch_model.model_validate(dict(op.patch))
            except PydanticValidationError as e:
                raise validation_error_from(e, label=resource.name) from e
            return Update(op.id, patch.model_dump(mode="json", exclude_unset=True))
        return op

    def list_mutate(self, resource: Resource, op: ListOp) -> dict[str, Any] | None:
        """
        Insert / Update / Delete one item of a collection resource.

        Returns the inserted or updated item, None for deletes. The read here
        is strict: an unreachable store raises instead of substituting an
        empty collection that would then overwrite the stored one.
        """
        if not resource.is_collection or resource.id_prefix is None:
            raise TypeError(f"{resource.name} is not a collection resource")

        op = self._prepare_op(resource, op)
        current = self._read_strict(resource)
        items = [i.model_dump(mode="json", exclude_none=True) for i in current]

        mutation = apply_list_op(items, op, id_prefix=resource.id_prefix, now=self._clock())
        if not mutation.changed:
            if isinstance(op, Delete):
                logger.info("LIST %s: delete of missing id %s is a no-op", resource.name, op.id)
            return mutation.affected

        self._store(resource, self._validate(resource, mutation.items))
        return mutation.affected

    def insert(self, resource: Resource, item: Mapping[str, Any]) -> dict[str, Any]:
        created = self.list_mutate(resource, Insert(item))
        if created is None:
            raise RuntimeError(f"LIST {resource.name}: insert returned no item")
        return created

    def update(self, resource: Resource, item_id: str, patch: Mapping[str, Any]) -> dict[str, Any]:
        updated = self.list_mutate(resource, Update(item_id, patch))
        if updated is None:
            raise RuntimeError(f"LIST {resource.name}: update of {item_id} returned no item")
        return updated

    def delete(self, resource: Resource, item_id: str) -> None:
        self.list_mutate(resource, Delete(item_id))

    def raw_outcome(self, resource: Resource) -> RemoteReadOutcome:
        """Raw transport outcome for one resource, for diagnostics."""
        return self._transport.get(self.key_for(resource))
