"""
JSON endpoints: ID-token sign-in, profile completion, user listing, probes.
"""
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

from ielts_backend.models.user import User
from ielts_backend.services.user_service import UserService


def _user(n: int, **overrides) -> User:
    fields = dict(
        google_id=f"google-sub-{n}",
        email=f"student{n}@example.com",
        first_name="Student",
        last_name=str(n),
    )
    fields.update(overrides)
    return User(**fields)


# ---------------------------------------------------------------------------
# POST /api/auth/google
# ---------------------------------------------------------------------------

async def test_token_login_requires_token(client, fake_google):
    response = await client.post("/api/auth/google", json={})

    assert response.status_code == 400
    assert fake_google.calls == []


async def test_token_login_without_body(client, fake_google):
    response = await client.post("/api/auth/google")

    assert response.status_code == 400
    assert fake_google.calls == []


async def test_token_login_rejects_invalid_token(client, fake_google, statements):
    fake_google.fail_with("Invalid Google token")

    response = await client.post("/api/auth/google", json={"token": "bogus"})

    assert response.status_code == 401
    assert statements == []


async def test_token_login_creates_user(client, fake_google):
    response = await client.post("/api/auth/google", json={"token": "id-token"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["isNew"] is True
    assert body["user"]["email"] == "ann@example.com"
    assert body["user"]["name"] == "Ann Lee"
    assert body["user"]["picture"] == "https://lh3.example/ann.png"
    assert isinstance(body["user"]["id"], int)
    assert fake_google.calls == [("verify_id_token", "id-token")]


async def test_token_login_accepts_credential_field(client, fake_google):
    response = await client.post("/api/auth/google", json={"credential": "gis-token"})

    assert response.status_code == 200
    assert fake_google.calls == [("verify_id_token", "gis-token")]


async def test_token_login_store_failure_is_500(client, monkeypatch):
    async def broken_lookup(self, google_id):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(UserService, "get_by_google_id", broken_lookup)

    response = await client.post("/api/auth/google", json={"token": "id-token"})

    assert response.status_code == 500


# ---------------------------------------------------------------------------
# POST /api/profile
# ---------------------------------------------------------------------------

async def test_profile_completion_updates_row(client, db):
    db.add(_user(7, id=7, email="ann@example.com"))
    await db.commit()

    response = await client.post("/api/profile", json={
        "id": 7,
        "first_name": "Ann",
        "last_name": "Lee",
        "phone": "555",
        "group_name": "B2",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    user = body["user"]
    assert user["id"] == 7
    assert user["is_profile_complete"] is True
    assert user["first_name"] == "Ann"
    assert user["last_name"] == "Lee"
    assert user["phone"] == "555"
    assert user["group_name"] == "B2"
    assert user["google_id"] == "google-sub-7"
    assert user["email"] == "ann@example.com"


async def test_profile_completion_is_idempotent(client, db):
    db.add(_user(3, id=3))
    await db.commit()
    payload = {"id": 3, "first_name": "Bo", "last_name": "Kim", "phone": "1", "group_name": "A1"}

    first = (await client.post("/api/profile", json=payload)).json()["user"]
    second = (await client.post("/api/profile", json=payload)).json()["user"]

    for field in ("google_id", "email", "created_at", "first_name", "last_name",
                  "phone", "group_name", "is_profile_complete"):
        assert first[field] == second[field]


async def test_profile_completion_keeps_unsent_fields(client, db):
    db.add(_user(4, id=4, phone="123"))
    await db.commit()

    response = await client.post("/api/profile", json={"id": 4, "group_name": "C1"})

    user = response.json()["user"]
    assert user["phone"] == "123"
    assert user["group_name"] == "C1"
    assert user["first_name"] == "Student"


async def test_profile_completion_ignores_identity_fields(client, db):
    db.add(_user(5, id=5))
    await db.commit()

    response = await client.post("/api/profile", json={
        "id": 5,
        "email": "hijack@example.com",
        "google_id": "other",
        "is_profile_complete": False,
    })

    user = response.json()["user"]
    assert user["email"] == "student5@example.com"
    assert user["google_id"] == "google-sub-5"
    assert user["is_profile_complete"] is True


async def test_profile_requires_id(client, statements):
    response = await client.post("/api/profile", json={"first_name": "Ann"})

    assert response.status_code == 400
    assert statements == []


async def test_profile_unknown_id_is_404(client):
    response = await client.post("/api/profile", json={"id": 999, "first_name": "Ann"})

    assert response.status_code == 404


async def test_profile_store_failure_is_500(client, db, monkeypatch):
    db.add(_user(6, id=6))
    await db.commit()

    async def broken_complete(self, user_id, **fields):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(UserService, "complete_profile", broken_complete)

    response = await client.post("/api/profile", json={"id": 6, "phone": "1"})

    assert response.status_code == 500


# ---------------------------------------------------------------------------
# GET /api/users
# ---------------------------------------------------------------------------

async def test_list_users_newest_first(client, db):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    # Inserted out of order on purpose
    db.add_all([
        _user(1, created_at=now + timedelta(minutes=5)),
        _user(2, created_at=now),
        _user(3, created_at=now + timedelta(minutes=10)),
    ])
    await db.commit()

    response = await client.get("/api/users")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [u["google_id"] for u in body["users"]] == [
        "google-sub-3", "google-sub-1", "google-sub-2"
    ]


async def test_list_users_empty(client):
    response = await client.get("/api/users")

    assert response.json() == {"success": True, "count": 0, "users": []}


async def test_list_users_store_failure_is_500(client, monkeypatch):
    async def broken_list(self):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(UserService, "list_all", broken_list)

    response = await client.get("/api/users")

    assert response.status_code == 500


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

async def test_root_is_plain_text(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.text == "Server is Up!"


async def test_health_reports_database(client):
    response = await client.get("/health")

    assert response.json() == {"status": "healthy", "database": "connected"}


async def test_metrics_exposes_login_counters(client):
    await client.get("/auth/google/callback")

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "google_logins_total" in response.text
    assert "http_requests_total" in response.text
