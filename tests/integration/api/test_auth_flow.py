from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.deps import get_clock, get_settings, get_store, rules_at
from src.api.main import app
from src.components.auth import INVALID_CREDENTIALS, USER_EXISTS
from src.components.tokens import EXPIRED_TOKEN, MISSING_TOKEN
from src.ports.repo import StoreError


class AdjustableClock:
    def __init__(self):
        self.now = datetime(2026, 6, 1, 12, 0, 0, tzinfo=UTC)

    def now_utc(self):
        return self.now


# --- Register ---


def test_register_returns_token_and_profile(client):
    response = client.post(
        "/api/auth/register",
        json={
            "full_name": " Alice Smith ",
            "email": "Alice@Example.com",
            "password": "password123",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    user = data["user"]
    assert user["email"] == "alice@example.com"
    assert user["full_name"] == "Alice Smith"
    assert user["is_admin"] is False
    assert user["is_invited"] is True
    assert user["has_rsvped"] is False
    assert user["rsvp_id"] is None
    assert "password_hash" not in user


def test_register_uninvited_user_allowed(register_user):
    body = register_user("bob@example.com")

    assert body["user"]["is_invited"] is False


def test_register_duplicate_email_conflict(client, register_user):
    register_user("alice@example.com")

    response = client.post(
        "/api/auth/register",
        json={"full_name": "Other", "email": "ALICE@example.com", "password": "password456"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["message"] == USER_EXISTS


@pytest.mark.parametrize(
    "payload,field",
    [
        ({"full_name": "  ", "email": "a@example.com", "password": "password123"}, "full_name"),
        ({"full_name": "A", "email": "not-an-email", "password": "password123"}, "email"),
        ({"full_name": "A", "email": "a@example.com", "password": "short"}, "password"),
    ],
)
def test_register_validation(client, payload, field):
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == field


# --- Login ---


def test_login_success(client, register_user):
    register_user("alice@example.com", "password123")

    response = client.post(
        "/api/auth/login", json={"email": " ALICE@example.com", "password": "password123"}
    )

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "alice@example.com"


def test_login_failures_are_indistinguishable(client, register_user):
    register_user("alice@example.com", "password123")

    wrong_password = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "nope-nope"}
    )
    unknown_email = client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "nope-nope"}
    )

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["detail"]["message"] == INVALID_CREDENTIALS
    assert wrong_password.headers["www-authenticate"] == "Bearer"


# --- Me / token handling ---


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["detail"]["message"] == MISSING_TOKEN


def test_me_rejects_garbage_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401


def test_me_returns_profile_without_rsvp(client, auth_headers):
    headers = auth_headers("carol@example.com")

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "carol@example.com"
    assert data["rsvp"] is None


def test_token_rejected_after_account_deleted(client, auth_headers, test_settings):
    headers = auth_headers("carol@example.com")
    store = SQLiteCredentialStore(test_settings.db_path)
    store.users.delete(store.users.get_by_email("carol@example.com").id)

    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_token_from_other_secret_rejected(client, auth_headers, test_settings):
    headers = auth_headers("carol@example.com")
    test_settings.secret_key = "rotated-secret"

    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_expired_token_rejected(client, register_user):
    clock = AdjustableClock()
    app.dependency_overrides[get_clock] = lambda: clock
    token = register_user("alice@example.com")["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    clock.now += timedelta(minutes=119)
    assert client.get("/api/auth/me", headers=headers).status_code == 200

    clock.now += timedelta(minutes=1)
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"]["message"] == EXPIRED_TOKEN


# --- Startup ---


@pytest.fixture
def bootstrapped_client(test_settings):
    test_settings.bootstrap_email = "Root@Example.com"
    test_settings.bootstrap_password = "root-password"
    app.dependency_overrides[get_settings] = lambda: test_settings
    rules_at.cache_clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    rules_at.cache_clear()


def test_startup_bootstraps_admin(bootstrapped_client):
    response = bootstrapped_client.post(
        "/api/auth/login", json={"email": "root@example.com", "password": "root-password"}
    )

    assert response.status_code == 200
    assert response.json()["user"]["is_admin"] is True


def test_health_after_startup(client):
    response = client.get("/health")

    assert response.status_code == 200
    names = {check["name"] for check in response.json()["checks"]}
    assert names == {"startup", "store"}
    assert client.get("/health/ready").json()["ready"] is True


def test_startup_fails_on_missing_required_env(test_settings, rules_path, monkeypatch):
    monkeypatch.delenv("RSVP_REQUIRED_FOR_TEST", raising=False)
    extra = "ops:\n  required_env: [RSVP_REQUIRED_FOR_TEST]\n"
    rules_path.write_text(rules_path.read_text(encoding="utf-8") + extra, encoding="utf-8")
    app.dependency_overrides[get_settings] = lambda: test_settings
    rules_at.cache_clear()
    try:
        with pytest.raises(RuntimeError, match="RSVP_REQUIRED_FOR_TEST"):
            with TestClient(app):
                pass
    finally:
        app.dependency_overrides.clear()
        rules_at.cache_clear()


# --- Store outage ---


class UnavailableUsers:
    def get_by_email(self, email):
        raise StoreError("database is locked")


def test_store_outage_is_503(client):
    app.dependency_overrides[get_store] = lambda: SimpleNamespace(users=UnavailableUsers())

    response = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "password123"}
    )

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "store_unavailable"
