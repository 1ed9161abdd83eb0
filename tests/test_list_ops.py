from __future__ import annotations

from datetime import datetime, timezone

import pytest

from errors import NotFoundError
from persistence.list_ops import Delete, Insert, Update, apply_list_op, new_item_id

NOW = datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc)
MS = int(NOW.timestamp() * 1000)


def test_new_item_id_skips_taken_ids():
    assert new_item_id("gallery", set(), NOW) == f"gallery-{MS}"
    assert new_item_id("gallery", {f"gallery-{MS}", f"gallery-{MS + 1}"}, NOW) == f"gallery-{MS + 2}"


def test_insert_does_not_mutate_input():
    items = [{"id": "gallery-1", "title": "a"}]
    result = apply_list_op(items, Insert({"title": "b"}), id_prefix="gallery", now=NOW)

    assert items == [{"id": "gallery-1", "title": "a"}]
    assert [i["title"] for i in result.items] == ["a", "b"]
    assert result.affected == {"title": "b", "id": f"gallery-{MS}", "createdAt": "2025-01-05T09:00:00.000Z"}
    assert result.changed is True


def test_update_keeps_server_fields():
    items = [{"id": "gallery-1", "title": "a", "createdAt": "2024-01-01T00:00:00.000Z"}]
    result = apply_list_op(
        items, Update("gallery-1", {"title": "b", "id": "x", "createdAt": "y"}), id_prefix="gallery", now=NOW
    )
    assert result.items == [{"id": "gallery-1", "title": "b", "createdAt": "2024-01-01T00:00:00.000Z"}]


def test_update_missing_raises():
    with pytest.raises(NotFoundError, match="Gallery not found"):
        apply_list_op([], Update("gallery-1", {}), id_prefix="gallery", now=NOW)


def test_delete_reports_whether_anything_changed():
    items = [{"id": "gallery-1"}, {"id": "gallery-2"}]
    assert apply_list_op(items, Delete("gallery-1"), id_prefix="gallery", now=NOW).items == [{"id": "gallery-2"}]
    missing = apply_list_op(items, Delete("gallery-9"), id_prefix="gallery", now=NOW)
    assert missing.changed is False
    assert missing.items == items
