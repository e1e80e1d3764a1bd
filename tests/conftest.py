from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.deps import get_settings, rules_at
from src.api.main import app
from src.app_shell.config import Settings
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
MIGRATIONS_DIR = str(PROJECT_ROOT / "migrations")

# Argon2 at minimum cost so the suite stays fast
TEST_RULES_YAML = """
auth:
  password_hashing:
    min_length: 8
    time_cost: 1
    memory_cost: 8
    parallelism: 1
  tokens:
    ttl_minutes: 120
invites:
  source: static
  emails:
    - alice@example.com
    - carol@example.com
    - admin@example.com
rsvp:
  meal_required_for: [yes, maybe]
  max_text_length: 500
"""


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "rsvp.db")
    SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def store(db_path) -> SQLiteCredentialStore:
    return SQLiteCredentialStore(db_path)


@pytest.fixture
def rules_path(tmp_path) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(TEST_RULES_YAML, encoding="utf-8")
    return path


@pytest.fixture
def test_rules(rules_path) -> Rules:
    return load_rules(rules_path)


@pytest.fixture
def test_settings(tmp_path, rules_path, monkeypatch) -> Settings:
    monkeypatch.delenv("RSVP_BOOTSTRAP_EMAIL", raising=False)
    monkeypatch.delenv("RSVP_BOOTSTRAP_PASSWORD", raising=False)
    settings = Settings()
    settings.data_dir = tmp_path / "data"
    settings.db_path = str(settings.data_dir / "rsvp.db")
    settings.rules_path = rules_path
    settings.migrations_dir = MIGRATIONS_DIR
    settings.secret_key = "test-secret"
    return settings


@pytest.fixture
def client(test_settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: test_settings
    rules_at.cache_clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    rules_at.cache_clear()


# --- API helpers ---


@pytest.fixture
def register_user(client):
    """Register through the API and return the response body."""

    def _register(email: str, password: str = "password123", name: str = "") -> dict:
        response = client.post(
            "/api/auth/register",
            json={
                "full_name": name or email.split("@")[0].title(),
                "email": email,
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register_user):
    """Register and return bearer headers for the new account."""

    def _headers(email: str, password: str = "password123") -> dict[str, str]:
        body = register_user(email, password)
        return {"Authorization": f"Bearer {body['access_token']}"}

    return _headers
