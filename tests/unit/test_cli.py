import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.clock import SystemClock
from src.adapters.invites import build_invite_registry
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.app_shell.cli import build_parser, main
from src.components.rsvp import SubmitRSVPInput, run_submit
from src.domain.entities import RSVP, Attendance, User
from src.domain.errors import ErrorKind
from src.rules.loader import load_rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SEED_FILE = PROJECT_ROOT / "seeds" / "seed_data.json"


@pytest.fixture
def cli_env(tmp_path, rules_path, monkeypatch):
    data_dir = tmp_path / "data"
    monkeypatch.setenv("RSVP_DATA_DIR", str(data_dir))
    monkeypatch.setenv("RSVP_RULES_PATH", str(rules_path))
    monkeypatch.setenv("RSVP_MIGRATIONS_DIR", str(PROJECT_ROOT / "migrations"))
    return str(data_dir / "rsvp.db")


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_migrate(cli_env, capsys):
    assert main(["migrate"]) == 0
    assert "Applied 1 migration(s)." in capsys.readouterr().out

    assert main(["migrate"]) == 0
    assert "Applied 0 migration(s)." in capsys.readouterr().out


def test_migrate_status(cli_env, capsys):
    assert main(["migrate", "--status"]) == 0
    out = capsys.readouterr().out
    assert "pending: 001_initial.sql" in out
    assert "1 pending migration(s)." in out

    main(["migrate"])
    capsys.readouterr()
    main(["migrate", "--status"])
    assert "0 pending migration(s)." in capsys.readouterr().out


def test_migrate_missing_dir(cli_env, monkeypatch, tmp_path):
    monkeypatch.setenv("RSVP_MIGRATIONS_DIR", str(tmp_path / "nowhere"))

    assert main(["migrate"]) == 1


def test_seed_project_fixture(cli_env, capsys):
    assert main(["seed", "--file", str(SEED_FILE)]) == 0
    # The shipped invitees are already on the static list in rules.yaml
    assert "Seeded 4 users, 2 RSVPs, 0 invites." in capsys.readouterr().out

    store = SQLiteCredentialStore(cli_env)
    alice = store.users.get_by_email("alice@example.com")
    assert alice.has_rsvped is True
    assert store.rsvps.get_by_owner(alice.id).attendance == Attendance.YES
    carol = store.users.get_by_email("carol@example.com")
    assert store.rsvps.get_by_owner(carol.id).attendance == Attendance.NO
    assert store.users.get_by_email("admin@example.com").is_admin is True


def test_seed_twice_is_harmless(cli_env, capsys):
    main(["seed", "--file", str(SEED_FILE)])
    capsys.readouterr()

    assert main(["seed", "--file", str(SEED_FILE)]) == 0
    assert "Seeded 0 users, 0 RSVPs, 0 invites." in capsys.readouterr().out


def _seed_dan(tmp_path) -> str:
    path = tmp_path / "dan.json"
    path.write_text(
        json.dumps(
            {
                "users": [
                    {
                        "fullName": "Dan",
                        "email": "Dan@Example.com",
                        "password": "password123",
                        "isInvited": True,
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def _submit_as(db_path: str, rules_path: Path, email: str):
    store = SQLiteCredentialStore(db_path)
    rules = load_rules(rules_path)
    registry = build_invite_registry(rules.invites, db_path)
    user = store.users.get_by_email(email)
    return run_submit(
        SubmitRSVPInput(user.id, Attendance.YES, "fish"), store, registry, SystemClock()
    )


def test_seed_static_source_ignores_new_invites(cli_env, rules_path, tmp_path, capsys, caplog):
    assert main(["seed", "--file", _seed_dan(tmp_path)]) == 0

    assert "Seeded 1 users, 0 RSVPs, 0 invites." in capsys.readouterr().out
    assert "isInvited ignored for Dan@Example.com" in caplog.text
    out = _submit_as(cli_env, rules_path, "dan@example.com")
    assert out.error.kind == ErrorKind.FORBIDDEN


def test_seed_sqlite_source_records_invites(cli_env, rules_path, tmp_path, capsys):
    rules_path.write_text(
        rules_path.read_text(encoding="utf-8").replace("source: static", "source: sqlite"),
        encoding="utf-8",
    )

    assert main(["seed", "--file", _seed_dan(tmp_path)]) == 0

    assert "Seeded 1 users, 0 RSVPs, 1 invites." in capsys.readouterr().out
    conn = sqlite3.connect(cli_env)
    invited = {row[0] for row in conn.execute("SELECT email FROM invited_emails")}
    conn.close()
    assert invited == {"dan@example.com"}
    out = _submit_as(cli_env, rules_path, "dan@example.com")
    assert out.success


def test_seed_missing_file(cli_env, tmp_path):
    assert main(["seed", "--file", str(tmp_path / "missing.json")]) == 1


def test_seed_invalid_file(cli_env, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"users": [{"email": "x@example.com"}]}), encoding="utf-8")

    assert main(["seed", "--file", str(bad)]) == 1


def test_promote_admin(cli_env, capsys):
    main(["migrate"])
    store = SQLiteCredentialStore(cli_env)
    stale = datetime(2020, 1, 1, tzinfo=UTC)
    store.users.insert(
        User(
            email="bob@example.com",
            full_name="Bob",
            password_hash="h",
            created_at=stale,
            updated_at=stale,
        )
    )

    assert main(["promote-admin", "BOB@example.com"]) == 0
    promoted = store.users.get_by_email("bob@example.com")
    assert promoted.is_admin is True
    assert promoted.updated_at > stale


def test_promote_unknown_user(cli_env):
    main(["migrate"])

    assert main(["promote-admin", "ghost@example.com"]) == 1


def test_reconcile_clean_and_drift(cli_env, capsys):
    main(["migrate"])
    store = SQLiteCredentialStore(cli_env)
    assert main(["reconcile"]) == 0

    user = store.users.insert(User(email="bob@example.com", full_name="Bob", password_hash="h"))
    store.rsvps.insert(RSVP(user_id=user.id, attendance=Attendance.NO))

    assert main(["reconcile"]) == 2
    assert store.users.get_by_id(user.id).has_rsvped is True
    # Drift repaired, so the next sweep is clean
    assert main(["reconcile"]) == 0


def test_reconcile_without_schema_fails(cli_env):
    assert main(["reconcile"]) == 1


def test_serve_runs_uvicorn(cli_env, monkeypatch):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

    assert main(["serve", "--port", "9001"]) == 0
    assert calls == [
        ("src.api.main:app", {"host": "127.0.0.1", "port": 9001, "log_level": "info"})
    ]
