import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.auth.crypto import Argon2PasswordHasher
from src.adapters.clock import SystemClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.deps import get_settings, rules_at
from src.api.errors import store_error_handler
from src.app_shell.config import Settings, configure_logging, validate_ops_rules
from src.components.bootstrap import BootstrapInput, run_bootstrap
from src.ports.repo import StoreError
from src.shell.http.health import (
    HealthCheckRegistry,
    StartupCheck,
    StartupTracker,
    StoreCheck,
    create_health_router,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

_tracker = StartupTracker()
_health = HealthCheckRegistry()
_health.register(StartupCheck(_tracker))


def _resolve_settings(app: FastAPI) -> Settings:
    # Honour test overrides of get_settings during startup as well
    factory = app.dependency_overrides.get(get_settings, get_settings)
    settings: Settings = factory()
    return settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = _resolve_settings(app)
    configure_logging(settings.log_level)

    # Load rules and validate on startup (fail-fast)
    try:
        rules = rules_at(str(settings.rules_path))
        validate_ops_rules(rules, settings)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.critical("Startup configuration invalid: %s", e)
        raise
    logger.info("Rules loaded from %s", settings.rules_path)

    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()

    store = SQLiteCredentialStore(settings.db_path)
    outcome = run_bootstrap(
        BootstrapInput(
            email=settings.bootstrap_email,
            password=settings.bootstrap_password,
            full_name=settings.bootstrap_name,
        ),
        store.users,
        Argon2PasswordHasher(rules.auth.password_hashing),
        SystemClock(),
        rules.auth.password_hashing.min_length,
    )
    if not outcome.success and outcome.error:
        logger.error("Bootstrap failed: %s", outcome.error.message)
    elif outcome.skipped_reason:
        logger.info("Bootstrap skipped: %s", outcome.skipped_reason)

    _health.register(StoreCheck(store.ping))
    _tracker.mark_started()
    yield
    # Shutdown cleanup if needed


app = FastAPI(
    title="Invite RSVP API",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_exception_handler(StoreError, store_error_handler)

# --- Routers ---
from src.api.routes import auth, rsvp, users  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(rsvp.router, prefix="/api/rsvp", tags=["RSVP"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(create_health_router(_health, _tracker, version=VERSION))


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
