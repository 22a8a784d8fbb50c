import itertools
from datetime import datetime, timezone

import pytest

import db_manager


class FakeSnapshot:
    def __init__(self, doc_id, data, reference=None):
        self.id = doc_id
        self._data = data
        self.reference = reference

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self._collection.docs.get(self.id), self)

    def set(self, data):
        self._collection.docs[self.id] = dict(data)

    def update(self, data):
        if self.id not in self._collection.docs:
            raise KeyError(f"No document to update: {self.id}")
        self._collection.docs[self.id].update(data)

    def delete(self):
        self._collection.docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection, filters):
        self._collection = collection
        self._filters = filters

    def where(self, *args, filter=None):
        # positional where() is deprecated in google-cloud-firestore
        assert not args, "use where(filter=FieldFilter(...))"
        return FakeQuery(self._collection, self._filters + [(filter.field_path, filter.op_string, filter.value)])

    def _matches(self, data):
        for field, op, value in self._filters:
            if op == '==' and data.get(field) != value:
                return False
            if op == 'in' and data.get(field) not in value:
                return False
        return True

    def stream(self):
        return [FakeSnapshot(doc_id, data, FakeDocumentRef(self._collection, doc_id))
                for doc_id, data in list(self._collection.docs.items()) if self._matches(data)]


class FakeCollection(FakeQuery):
    _ids = itertools.count(1)

    def __init__(self, name):
        self.name = name
        self.docs = {}
        super().__init__(self, [])

    def document(self, doc_id=None):
        return FakeDocumentRef(self, doc_id or f"{self.name}-{next(self._ids)}")

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return datetime.now(timezone.utc), ref


class FakeFirestore:
    """In-memory stand-in for the handful of Firestore calls the console makes."""

    def __init__(self):
        self.collections = {}
        self.fail_on = set()

    def collection(self, name):
        if name in self.fail_on:
            raise RuntimeError(f"Firestore unavailable for {name}")
        return self.collections.setdefault(name, FakeCollection(name))

    def seed(self, name, doc_id, data):
        self.collection(name).docs[doc_id] = dict(data)

    def data(self, name, doc_id):
        return self.collection(name).docs.get(doc_id)


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(db_manager, 'get_db', lambda *args, **kwargs: db)
    return db


@pytest.fixture
def morning():
    return datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
