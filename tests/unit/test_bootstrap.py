from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from src.components.bootstrap.component import run
from src.components.bootstrap.models import BootstrapInput
from src.domain.entities import User
from src.domain.errors import ErrorKind


class FakeTime:
    def now_utc(self):
        return datetime(2026, 1, 12, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def mock_user_repo():
    repo = MagicMock()
    repo.list_all.return_value = []  # Empty DB
    return repo


@pytest.fixture
def mock_hasher():
    hasher = MagicMock()
    hasher.hash_password.return_value = "hashed_password"
    return hasher


def test_bootstrap_success(mock_user_repo, mock_hasher):
    """Should create an admin if DB is empty and credentials provided."""
    inp = BootstrapInput(email="Admin@Example.com", password="secure-pass")

    result = run(inp, user_repo=mock_user_repo, hasher=mock_hasher, time=FakeTime())

    assert result.success is True
    assert result.created is True
    assert result.user is not None
    assert result.user.email == "admin@example.com"
    assert result.user.is_admin is True
    assert result.user.password_hash == "hashed_password"

    mock_user_repo.insert.assert_called_once()


def test_bootstrap_no_credentials(mock_user_repo):
    """Should skip if credentials missing."""
    result = run(
        BootstrapInput(email=None, password=None),
        user_repo=mock_user_repo,
        hasher=MagicMock(),
        time=FakeTime(),
    )

    assert result.success is True
    assert result.created is False
    assert "not provided" in (result.skipped_reason or "")
    mock_user_repo.insert.assert_not_called()


def test_bootstrap_users_exist(mock_hasher):
    """Should skip if users already exist."""
    repo = MagicMock()
    repo.list_all.return_value = [
        User(email="someone@example.com", full_name="Someone", password_hash="x")
    ]

    result = run(
        BootstrapInput(email="admin@example.com", password="secure-pass"),
        user_repo=repo,
        hasher=mock_hasher,
        time=FakeTime(),
    )

    assert result.created is False
    assert result.skipped_reason == "Users already exist in the system"
    repo.insert.assert_not_called()


def test_bootstrap_short_password(mock_user_repo, mock_hasher):
    result = run(
        BootstrapInput(email="admin@example.com", password="short"),
        user_repo=mock_user_repo,
        hasher=mock_hasher,
        time=FakeTime(),
    )

    assert result.success is False
    assert result.error is not None
    assert result.error.kind == ErrorKind.VALIDATION
    mock_user_repo.insert.assert_not_called()
