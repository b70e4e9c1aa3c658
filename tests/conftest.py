# Ensure project root is on sys.path so 'tns.*' imports work during test collection
import sys as _sys_path_guard
from pathlib import Path as _Path_path_guard
_PROJECT_ROOT = str(_Path_path_guard(__file__).resolve().parent.parent)
if _PROJECT_ROOT not in _sys_path_guard.path:
    _sys_path_guard.path.insert(0, _PROJECT_ROOT)

from typing import Any, Dict, List, Mapping, Optional

import pytest
from fastapi.testclient import TestClient

from tns.main import create_app
from tns.services import DuplicateTopicError, RequestContext, SQLiteTopicStore, StorageError, TopicRegistry


class FakeTopicStore:
    """
    Minimaler In-Memory-Fake für TopicStorePort.
    - race=True: find_by_field findet nie etwas (simuliert einen parallelen
      Registrant zwischen Check und Insert); insert erzwingt trotzdem Eindeutigkeit.
    - fail=True: jede Operation wirft StorageError.
    """

    def __init__(self, *, race: bool = False, fail: bool = False) -> None:
        self.docs: List[Dict[str, Any]] = []
        self.race = race
        self.fail = fail
        self.writes = 0

    def _guard(self) -> None:
        if self.fail:
            raise StorageError("store unreachable")

    def insert(self, doc: Mapping[str, Any], *, ctx: Optional[RequestContext] = None) -> None:
        self._guard()
        if any(d["topic"] == doc["topic"] for d in self.docs):
            raise DuplicateTopicError()
        self.docs.append(dict(doc))
        self.writes += 1

    def find_all(self, *, ctx: Optional[RequestContext] = None) -> List[Dict[str, Any]]:
        self._guard()
        return [dict(d) for d in self.docs]

    def find_by_id(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> Optional[Dict[str, Any]]:
        return self.find_by_field("id", doc_id, ctx=ctx)

    def find_by_field(self, field: str, value: Any, *, ctx: Optional[RequestContext] = None) -> Optional[Dict[str, Any]]:
        self._guard()
        if self.race and field == "topic":
            return None
        for d in self.docs:
            if d.get(field) == value:
                return dict(d)
        return None

    def update(self, doc_id: str, doc: Mapping[str, Any], *, ctx: Optional[RequestContext] = None) -> int:
        self._guard()
        for i, d in enumerate(self.docs):
            if d["id"] == doc_id:
                self.docs[i] = dict(doc)
                self.writes += 1
                return 1
        return 0

    def delete(self, doc_id: str, *, ctx: Optional[RequestContext] = None) -> int:
        self._guard()
        before = len(self.docs)
        self.docs = [d for d in self.docs if d["id"] != doc_id]
        self.writes += before - len(self.docs)
        return before - len(self.docs)

    def count(self, *, ctx: Optional[RequestContext] = None) -> int:
        self._guard()
        return len(self.docs)

    def ping(self, *, ctx: Optional[RequestContext] = None) -> bool:
        self._guard()
        return True


@pytest.fixture
def fake_store_cls():
    return FakeTopicStore


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteTopicStore.connect(str(tmp_path / "tns_test.db"))
    yield store
    store.close()


@pytest.fixture
def registry(sqlite_store) -> TopicRegistry:
    return TopicRegistry(sqlite_store)


@pytest.fixture
def client(sqlite_store):
    app = create_app(store=sqlite_store)
    with TestClient(app) as c:
        yield c
