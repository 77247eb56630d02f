import pytest

from civicease.core.exceptions import UnauthorizedError, ValidationError
from civicease.services.user_service import user_service


class FakeIdentityProvider:
    """Records created accounts instead of calling Firebase."""

    def __init__(self):
        self.accounts = {}

    async def create_user(self, email, password, display_name=None, role=None):
        if email in self.accounts:
            raise ValidationError("The user with the provided email already exists (EMAIL_EXISTS).")
        uid = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = {"uid": uid, "password": password, "role": role}
        return {"uid": uid, "email": email}

    async def sign_in_with_password(self, email, password):
        account = self.accounts.get(email)
        if not account or account["password"] != password:
            raise UnauthorizedError("Invalid email or password")
        return {"idToken": "id-token", "refreshToken": "refresh", "expiresIn": "3600", "localId": account["uid"]}


@pytest.fixture
def provider(monkeypatch):
    fake = FakeIdentityProvider()
    monkeypatch.setattr(user_service, "auth", fake)
    return fake


CITIZEN = {
    "email": "ravi@civicease.in",
    "password": "secret123",
    "phone": "9876543210",
    "name": "Ravi Kumar",
    "aadhaar": "1234-5678-9012",
    "address": "12 MG Road",
}


def test_citizen_signup_and_login(memory_db, provider, client_as):
    client = client_as(None)
    resp = client.post("/auth/signup/citizen", json=CITIZEN)
    assert resp.status_code == 200
    uid = resp.json()["userId"]

    profile = memory_db.peek("users", uid)
    assert profile["role"] == "citizen"
    assert profile["address"] == "12 MG Road"
    assert "password" not in profile
    assert provider.accounts[CITIZEN["email"]]["role"] == "citizen"

    resp = client.post("/auth/login", json={"email": CITIZEN["email"], "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["idToken"] == "id-token"
    assert resp.json()["user"]["name"] == "Ravi Kumar"

    resp = client.post("/auth/login", json={"email": CITIZEN["email"], "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid email or password"}


def test_duplicate_email_is_400(memory_db, provider, client_as):
    client = client_as(None)
    assert client.post("/auth/signup/citizen", json=CITIZEN).status_code == 200
    resp = client.post("/auth/signup/citizen", json=CITIZEN)
    assert resp.status_code == 400
    assert "already exists" in resp.json()["error"]


def test_signup_validation(memory_db, provider, client_as):
    resp = client_as(None).post("/auth/signup/citizen", json={"email": "ravi@civicease.in", "password": "secret123"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Missing required fields")
    assert provider.accounts == {}


def test_contractor_signup(memory_db, provider, client_as):
    resp = client_as(None).post(
        "/auth/signup/contractor",
        json={**CITIZEN, "email": "build@civicease.in", "workTypes": ["roads", "drainage"], "departments": ["D1"]},
    )
    assert resp.status_code == 200
    profile = memory_db.peek("users", resp.json()["userId"])
    assert profile["role"] == "contractor"
    assert profile["workTypes"] == ["roads", "drainage"]


def test_subadmin_signup_links_department(people, provider, client_as, memory_db):
    payload = {"email": "roads@civicease.in", "password": "secret123", "phone": "9000011111",
               "name": "Anita", "departmentId": "D1"}

    resp = client_as(people["citizen"]).post("/auth/signup/subadmin", json=payload)
    assert resp.status_code == 403
    assert resp.json() == {"error": "Only main admin can create sub-admins"}

    resp = client_as(people["admin"]).post("/auth/signup/subadmin", json=payload)
    assert resp.status_code == 200
    uid = resp.json()["userId"]
    assert memory_db.peek("users", uid)["departmentName"] == "Roads and Transportation Department"
    assert memory_db.peek("departments", "D1")["subAdminId"] == uid


def test_create_admin_requires_secret(memory_db, provider, client_as):
    payload = {"email": "chief@civicease.in", "password": "secret123", "name": "Chief", "secretKey": "guess"}
    resp = client_as(None).post("/auth/create-admin", json=payload)
    assert resp.status_code == 403
    assert resp.json() == {"error": "Invalid secret key"}
    assert provider.accounts == {}

    resp = client_as(None).post("/auth/create-admin", json={**payload, "secretKey": "CIVICEASE_ADMIN_2025"})
    assert resp.status_code == 200
    assert memory_db.peek("users", resp.json()["userId"])["role"] == "admin"


def test_profile_and_user_lists(people, client_as):
    resp = client_as(people["citizen"]).get("/profile")
    assert resp.json()["user"]["id"] == "citizen1"

    contractors = client_as(people["subadmin"]).get("/contractors").json()["contractors"]
    assert [c["id"] for c in contractors] == ["C1", "C2"]

    assert client_as(people["subadmin"]).get("/subadmins").status_code == 403
    subadmins = client_as(people["admin"]).get("/subadmins").json()["subadmins"]
    assert {s["id"] for s in subadmins} == {"S1", "S2"}


def test_reassign_subadmin_department(people, client_as, memory_db):
    memory_db.put("departments", "D1", {**memory_db.peek("departments", "D1"), "subAdminId": "S1", "subAdminName": "S1"})
    batches = memory_db.batches

    resp = client_as(people["admin"]).patch("/subadmins/S1/department", json={"departmentId": "D2"})
    assert resp.status_code == 200
    assert resp.json()["subadmin"]["departmentId"] == "D2"

    assert memory_db.batches == batches + 1
    assert memory_db.peek("users", "S1")["departmentName"] == "Water Supply and Drainage Department"
    assert memory_db.peek("departments", "D2")["subAdminId"] == "S1"
    assert memory_db.peek("departments", "D1")["subAdminId"] is None

    resp = client_as(people["admin"]).patch("/subadmins/S1/department", json={"departmentId": "D2"})
    assert resp.status_code == 400

    resp = client_as(people["admin"]).patch("/subadmins/C1/department", json={"departmentId": "D2"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Sub-admin not found"}

    resp = client_as(people["subadmin"]).patch("/subadmins/S1/department", json={"departmentId": "D1"})
    assert resp.status_code == 403
