"""Contract tests shared by every record store backend, plus remote mirroring."""

from unittest.mock import MagicMock

import pytest

from exceptions import ExternalServiceError, PersistenceError, ValidationError
from record_store import FirestoreRecordStore, InMemoryRecordStore, MirroredRecordStore, SQLiteRecordStore


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryRecordStore()
    return SQLiteRecordStore(str(tmp_path / "records.db"))


def test_put_and_get(any_store):
    saved = any_store.put("users", {"id": "u1", "points": 3})

    assert saved["createdAt"] and saved["updatedAt"]
    assert any_store.get("users", "u1") == saved
    assert any_store.get("users", "missing") is None


def test_put_requires_id(any_store):
    with pytest.raises(ValidationError):
        any_store.put("users", {"points": 3})


def test_upsert_keeps_created_at(any_store):
    first = any_store.put("users", {"id": "u1", "points": 1})
    second = any_store.put("users", {"id": "u1", "points": 2})

    assert second["createdAt"] == first["createdAt"]
    assert any_store.get("users", "u1")["points"] == 2
    assert len(any_store.get_all("users")) == 1


def test_collections_are_isolated(any_store):
    any_store.put("users", {"id": "x"})
    any_store.put("submissions", {"id": "x", "userId": "u1"})

    assert len(any_store.get_all("users")) == 1
    assert any_store.get("submissions", "x")["userId"] == "u1"


def test_delete_and_query(any_store):
    any_store.put("submissions", {"id": "a", "status": "approved"})
    any_store.put("submissions", {"id": "b", "status": "pending"})

    assert [r["id"] for r in any_store.query("submissions", lambda r: r["status"] == "approved")] == ["a"]
    assert any_store.delete("submissions", "a") is True
    assert any_store.delete("submissions", "a") is False
    assert [r["id"] for r in any_store.get_all("submissions")] == ["b"]


def test_health_check(any_store):
    assert any_store.health_check()["status"] == "OK"


def test_memory_store_returns_copies():
    store = InMemoryRecordStore()
    store.put("users", {"id": "u1", "badges": []})

    store.get("users", "u1")["badges"].append("gold_eco")

    assert store.get("users", "u1")["badges"] == []


def test_sqlite_persists_across_instances(tmp_path):
    path = str(tmp_path / "records.db")
    SQLiteRecordStore(path).put("users", {"id": "u1"})

    assert SQLiteRecordStore(path).get("users", "u1")["id"] == "u1"


def test_sqlite_errors_become_persistence_errors(tmp_path):
    store = SQLiteRecordStore(str(tmp_path / "records.db"))
    store.db_path = str(tmp_path / "missing-dir" / "records.db")

    with pytest.raises(PersistenceError):
        store.get_all("users")


def test_firestore_store_uses_documents():
    client = MagicMock()
    doc = client.collection.return_value.document.return_value
    doc.get.return_value.exists = True
    doc.get.return_value.to_dict.return_value = {"id": "u1"}
    store = FirestoreRecordStore(client)

    assert store.get("users", "u1") == {"id": "u1"}
    store.put("users", {"id": "u1", "points": 5})

    client.collection.assert_called_with("users")
    written = doc.set.call_args[0][0]
    assert written["points"] == 5 and "updatedAt" in written


def test_firestore_failure_is_persistence_error():
    client = MagicMock()
    client.collection.return_value.stream.side_effect = RuntimeError("unavailable")

    with pytest.raises(PersistenceError):
        FirestoreRecordStore(client).get_all("users")


def test_mirror_writes_through_to_remote():
    remote = MagicMock()
    store = MirroredRecordStore(InMemoryRecordStore(), remote)

    saved = store.put("users", {"id": "u1"})
    store.delete("users", "u1")

    remote.upsert.assert_called_once_with("users", saved)
    remote.delete.assert_called_once_with("users", "u1")


def test_mirror_keeps_local_write_when_remote_down():
    remote = MagicMock()
    remote.upsert.side_effect = ExternalServiceError("Remote API unreachable")
    store = MirroredRecordStore(InMemoryRecordStore(), remote)

    store.put("users", {"id": "u1"})

    assert store.get("users", "u1")["id"] == "u1"
