from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Union

from errors import NotFoundError

from .documents import iso_timestamp

# Never taken from caller input.
SERVER_ASSIGNED_FIELDS = ("id", "createdAt")


@dataclass(frozen=True)
class Insert:
    item: Mapping[str, Any]


@dataclass(frozen=True)
class Update:
    id: str
    patch: Mapping[str, Any]


@dataclass(frozen=True)
class Delete:
    id: str


ListOp = Union[Insert, Update, Delete]


@dataclass
class ListMutation:
    items: list[dict[str, Any]]
    affected: dict[str, Any] | None = None
    changed: bool = False


def new_item_id(prefix: str, existing_ids: set[str], now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    while f"{prefix}-{millis}" in existing_ids:
        millis += 1
    return f"{prefix}-{millis}"


def _client_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in SERVER_ASSIGNED_FIELDS}


def apply_list_op(items: list[dict[str, Any]], op: ListOp, *, id_prefix: str, now: datetime) -> ListMutation:
    """
    Apply one id-addressed mutation to a collection held in memory.

    - Insert: assigns `"<prefix>-<epoch_ms>"` and `createdAt`.
    - Update: shallow merge into the matching item; NotFoundError if absent.
    - Delete: removes the matching item; absent ids leave the list unchanged.
    """
    current = [dict(i) for i in items]

    if isinstance(op, Insert):
        existing_ids = {str(i.get("id")) for i in current}
        created = _client_fields(op.item)
        created["id"] = new_item_id(id_prefix, existing_ids, now)
        created["createdAt"] = iso_timestamp(now)
        current.append(created)
        return ListMutation(items=current, affected=created, changed=True)

    if isinstance(op, Update):
        index = next((n for n, i in enumerate(current) if i.get("id") == op.id), None)
        if index is None:
            raise NotFoundError(f"{id_prefix.capitalize()} not found")
        merged = {**current[index], **_client_fields(op.patch)}
        current[index] = merged
        return ListMutation(items=current, affected=merged, changed=True)

    if isinstance(op, Delete):
        kept = [i for i in current if i.get("id") != op.id]
        removed = len(kept) != len(current)
        return ListMutation(items=kept, changed=removed)

    raise TypeError(f"Unsupported list operation: {op!r}")
