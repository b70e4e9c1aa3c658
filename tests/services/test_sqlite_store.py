# -*- coding: utf-8 -*-
import pytest

from tns.core.settings import resolve_database_path
from tns.services import DuplicateTopicError, SQLiteTopicStore, StorageError, ValidationError


def _doc(i: str, topic: str, **extra):
    return {"id": i, "topic": topic, **extra}


def test_insert_find_update_delete(sqlite_store):
    a = "a" * 24
    sqlite_store.insert(_doc(a, "orders", meta={"k": [1, 2]}))

    assert sqlite_store.find_by_id(a) == _doc(a, "orders", meta={"k": [1, 2]})
    assert sqlite_store.find_by_field("topic", "orders")["id"] == a
    assert sqlite_store.find_by_field("topic", "ORDERS") is None

    assert sqlite_store.update(a, _doc(a, "orders", meta=None)) == 1
    assert sqlite_store.find_by_id(a)["meta"] is None
    assert sqlite_store.update("b" * 24, _doc("b" * 24, "x")) == 0

    assert sqlite_store.delete(a) == 1
    assert sqlite_store.delete(a) == 0
    assert sqlite_store.count() == 0


def test_unique_topic_index(sqlite_store):
    sqlite_store.insert(_doc("a" * 24, "orders"))
    with pytest.raises(DuplicateTopicError):
        sqlite_store.insert(_doc("b" * 24, "orders"))
    assert sqlite_store.count() == 1


def test_find_by_unindexed_field_rejected(sqlite_store):
    with pytest.raises(ValidationError):
        sqlite_store.find_by_field("endpoint", "x")


def test_store_survives_reopen(tmp_path):
    path = str(tmp_path / "persist.db")
    store = SQLiteTopicStore.connect(path)
    store.insert(_doc("c" * 24, "orders"))
    store.close()

    reopened = SQLiteTopicStore.connect(f"sqlite:///{path}")
    assert [d["topic"] for d in reopened.find_all()] == ["orders"]
    reopened.close()


def test_closed_store_raises_storage_error(tmp_path):
    store = SQLiteTopicStore.connect(str(tmp_path / "closed.db"))
    store.close()
    with pytest.raises(StorageError):
        store.find_all()


def test_connect_failure_is_storage_error(tmp_path):
    with pytest.raises(StorageError):
        SQLiteTopicStore.connect(str(tmp_path / "missing-dir" / "tns.db"))
    with pytest.raises(StorageError):
        SQLiteTopicStore.connect("mongodb://localhost:27017")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("tns.db", "tns.db"),
        ("sqlite:///data/t.db", "data/t.db"),
        ("sqlite:///:memory:", ":memory:"),
        (":memory:", ":memory:"),
    ],
)
def test_resolve_database_path(raw, expected):
    assert resolve_database_path(raw) == expected


def test_resolve_database_path_rejects_blank():
    with pytest.raises(ValueError):
        resolve_database_path("  ")


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_are_rejected(sqlite_store, bad):
    with pytest.raises(ValidationError):
        sqlite_store.insert(_doc("a" * 24, "orders", qos=bad))
    assert sqlite_store.count() == 0
    assert sqlite_store.find_all() == []


def test_unpaired_surrogate_is_validation_error(sqlite_store):
    with pytest.raises(ValidationError):
        sqlite_store.insert(_doc("a" * 24, "a\ud800b"))
    with pytest.raises(ValidationError):
        sqlite_store.find_by_field("topic", "a\ud800b")
    assert sqlite_store.find_all() == []
