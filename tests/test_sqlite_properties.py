from __future__ import annotations

import pytest

from adapters.sqlite_properties import SQLitePropertyStore
from core.errors import QuotaExceededError


def _store(tmp_path, quota: int = 3) -> SQLitePropertyStore:
    store = SQLitePropertyStore(str(tmp_path / "props.db"), quota=quota)
    store.init_db()
    return store


def test_set_get_delete(tmp_path) -> None:
    store = _store(tmp_path)

    store.set_property("a", "1")
    assert store.get_property("a") == "1"
    assert store.get_property("missing") is None

    store.delete_property("a")
    assert store.get_property("a") is None


def test_upsert_does_not_consume_a_slot(tmp_path) -> None:
    store = _store(tmp_path, quota=1)

    store.set_property("a", "1")
    store.set_property("a", "2")

    assert store.list_properties() == {"a": "2"}


def test_new_key_beyond_quota_is_rejected(tmp_path) -> None:
    store = _store(tmp_path, quota=2)
    store.set_property("a", "1")
    store.set_property("b", "2")

    with pytest.raises(QuotaExceededError):
        store.set_property("c", "3")

    store.delete_property("a")
    store.set_property("c", "3")
    assert sorted(store.list_properties()) == ["b", "c"]
