import copy

import pytest
from fastapi.testclient import TestClient


class InMemoryDatabase:
    """Stands in for DatabaseService: same coroutine API, dict-of-dicts storage."""

    def __init__(self):
        self.collections = {}
        self.batches = 0
        self.failing = False  # reads report a storage error while set

    # sync helpers for test setup / assertions
    def put(self, collection, document_id, data):
        self.collections.setdefault(collection, {})[document_id] = copy.deepcopy(data)
        return data

    def peek(self, collection, document_id):
        return copy.deepcopy(self.collections.get(collection, {}).get(document_id))

    def count(self, collection):
        return len(self.collections.get(collection, {}))

    # DatabaseService API
    async def get_document(self, collection, document_id):
        if self.failing:
            return False, None, "firestore down"
        return True, self.peek(collection, document_id), None

    async def create_document(self, collection, data, document_id=None):
        document_id = document_id or f"{collection}-{self.count(collection) + 1}"
        self.put(collection, document_id, data)
        return True, document_id, None

    async def set_document(self, collection, document_id, data, merge=False):
        if merge and self.peek(collection, document_id):
            merged = self.peek(collection, document_id)
            merged.update(data)
            data = merged
        self.put(collection, document_id, data)
        return True, None

    async def update_document(self, collection, document_id, updates):
        current = self.peek(collection, document_id)
        if current is None:
            return False, "No document to update"
        current.update(updates)
        self.put(collection, document_id, current)
        return True, None

    async def delete_document(self, collection, document_id):
        self.collections.get(collection, {}).pop(document_id, None)
        return True, None

    async def query_documents(self, collection, filters=None, limit=None):
        if self.failing:
            return False, [], "firestore down"

        def matches(doc):
            for field, op, value in filters or []:
                actual = doc.get(field)
                if op == "==" and actual != value:
                    return False
                if op == "in" and actual not in value:
                    return False
                if op == "array-contains" and value not in (actual or []):
                    return False
            return True

        results = [copy.deepcopy(d) for d in self.collections.get(collection, {}).values() if matches(d)]
        return True, results[:limit] if limit else results, None

    async def get_all_documents(self, collection):
        return await self.query_documents(collection)

    async def commit_batch(self, writes):
        self.batches += 1
        for collection, document_id, data, merge in writes:
            await self.set_document(collection, document_id, data, merge=merge)
        return True, None


@pytest.fixture
def memory_db(monkeypatch):
    """Point every service singleton at a fresh in-memory store."""
    from civicease.services.announcement_service import announcement_service
    from civicease.services.complaint_service import complaint_service
    from civicease.services.complaint_token_service import complaint_token_service
    from civicease.services.department_service import department_service
    from civicease.services.user_service import user_service

    db = InMemoryDatabase()
    for service in (announcement_service, complaint_service, complaint_token_service,
                    department_service, user_service):
        monkeypatch.setattr(service, "db", db)
    return db


def make_user(db, uid, role, **fields):
    profile = {"id": uid, "email": f"{uid}@example.com", "name": uid.title(), "phone": "9000000000", "role": role}
    profile.update(fields)
    db.put("users", uid, profile)
    return {**profile, "uid": uid}


def make_department(db, department_id="D1", name="Roads and Transportation Department"):
    department = {
        "id": department_id,
        "name": name,
        "customerCare": {"phone": "1800-XXX-XXXX", "email": "roads@civicease.gov"},
        "subAdminId": None,
        "createdAt": "2025-01-01T00:00:00.000Z",
    }
    db.put("departments", department_id, department)
    return department


@pytest.fixture
def people(memory_db):
    """One user per role around department D1, plus a second department D2."""
    make_department(memory_db, "D1")
    make_department(memory_db, "D2", "Water Supply and Drainage Department")
    return {
        "citizen": make_user(memory_db, "citizen1", "citizen", address="12 MG Road"),
        "other_citizen": make_user(memory_db, "citizen2", "citizen"),
        "admin": make_user(memory_db, "admin1", "admin"),
        "subadmin": make_user(memory_db, "S1", "subadmin", departmentId="D1", departmentName="Roads and Transportation Department"),
        "other_subadmin": make_user(memory_db, "S2", "subadmin", departmentId="D2", departmentName="Water Supply and Drainage Department"),
        "contractor": make_user(memory_db, "C1", "contractor", workTypes=["roads"]),
        "other_contractor": make_user(memory_db, "C2", "contractor"),
    }


@pytest.fixture
def client_as(memory_db):
    """
    Factory returning a TestClient authenticated as the given user dict (None = anonymous).
    The override is app-wide, so the most recent call decides who is signed in.
    """
    from civicease.auth.dependencies import get_current_user as _real_get_current_user
    from civicease.main import app

    def factory(user):
        app.dependency_overrides.pop(_real_get_current_user, None)
        if user is not None:
            app.dependency_overrides[_real_get_current_user] = lambda: user
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()
