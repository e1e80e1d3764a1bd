import argparse
import logging
import sys
from pathlib import Path

from src.adapters.auth.crypto import Argon2PasswordHasher
from src.adapters.clock import SystemClock
from src.adapters.invites import SQLiteInviteRegistry, build_invite_registry
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.app_shell.config import Settings, configure_logging
from src.app_shell.seed import load_seed_file, seed_database
from src.components.rsvp import run_reconcile
from src.domain.entities import normalize_email
from src.ports.repo import StoreError
from src.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_migrate(settings: Settings, args: argparse.Namespace) -> int:
    migrator = SQLiteMigrator(settings.db_path, settings.migrations_dir)
    if args.status:
        pending = migrator.pending_migrations()
        for name in pending:
            print(f"pending: {name}")
        print(f"{len(pending)} pending migration(s).")
        return 0

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s).")
    return 0


def handle_seed(settings: Settings, args: argparse.Namespace) -> int:
    rules = load_rules(settings.rules_path)
    data = load_seed_file(Path(args.file))

    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    store = SQLiteCredentialStore(settings.db_path)

    # Invites are only writable when the service reads them from the database
    registry = build_invite_registry(rules.invites, settings.db_path)
    writable = registry if isinstance(registry, SQLiteInviteRegistry) else None
    if writable is None:
        ignored = [
            u.email for u in data.users if u.is_invited and not registry.is_invited(u.email)
        ]
        if ignored:
            logger.warning(
                "invites.source is static; isInvited ignored for %s (add them to %s)",
                ", ".join(ignored),
                settings.rules_path,
            )

    report = seed_database(
        data,
        store,
        Argon2PasswordHasher(rules.auth.password_hashing),
        SystemClock(),
        invite_registry=writable,
    )
    for reason in report.skipped:
        logger.warning("Skipped %s", reason)
    print(f"Seeded {report.users} users, {report.rsvps} RSVPs, {report.invites} invites.")
    return 0


def handle_reconcile(settings: Settings, args: argparse.Namespace) -> int:
    report = run_reconcile(SQLiteCredentialStore(settings.db_path), SystemClock())
    print(
        f"Linked {len(report.repaired_user_ids)}, cleared {len(report.cleared_user_ids)}, "
        f"orphaned RSVPs {len(report.orphaned_rsvp_ids)}."
    )
    return 0 if report.clean else 2


def handle_promote_admin(settings: Settings, args: argparse.Namespace) -> int:
    store = SQLiteCredentialStore(settings.db_path)
    email = normalize_email(args.email)
    user = store.users.get_by_email(email)
    if not user:
        logger.error("User %s not found.", email)
        return 1

    store.users.update(user.id, {"is_admin": True, "updated_at": SystemClock().now_utc()})
    print(f"{email} is now an admin.")
    return 0


def handle_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    logger.info("Starting RSVP API on http://%s:%s", args.host, args.port)
    uvicorn.run("src.api.main:app", host=args.host, port=args.port, log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Invite RSVP CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--status", action="store_true", help="List pending migrations without applying them"
    )

    # seed
    seed_parser = subparsers.add_parser("seed", help="Load users and RSVPs from a JSON file")
    seed_parser.add_argument("--file", required=True, help="Path to seed JSON")

    # reconcile
    subparsers.add_parser(
        "reconcile", help="Repair user/RSVP back-references (exit 2 if drift was found)"
    )

    # promote-admin
    promote_parser = subparsers.add_parser("promote-admin", help="Grant admin to a user")
    promote_parser.add_argument("email", help="Email of the user to promote")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


HANDLERS = {
    "migrate": handle_migrate,
    "seed": handle_seed,
    "reconcile": handle_reconcile,
    "promote-admin": handle_promote_admin,
    "serve": handle_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level)

    try:
        return HANDLERS[args.command](settings, args)
    except (FileNotFoundError, ValueError, RuntimeError, StoreError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
