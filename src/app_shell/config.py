import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)

DEV_SECRET_KEY = "dev-secret-unsafe"


class Settings:
    """Process configuration read from the environment."""

    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("RSVP_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "rsvp.db")
        self.rules_path = Path(os.environ.get("RSVP_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.migrations_dir = str(
            Path(os.environ.get("RSVP_MIGRATIONS_DIR", str(self.base_dir / "migrations")))
        )
        self.secret_key = os.environ.get("RSVP_SECRET_KEY", DEV_SECRET_KEY)
        self.log_level = os.environ.get("RSVP_LOG_LEVEL", "INFO").upper()
        self.bootstrap_email = os.environ.get("RSVP_BOOTSTRAP_EMAIL")
        self.bootstrap_password = os.environ.get("RSVP_BOOTSTRAP_PASSWORD")
        self.bootstrap_name = os.environ.get("RSVP_BOOTSTRAP_NAME", "Administrator")

    def __repr__(self) -> str:
        return f"Settings(db_path={self.db_path!r}, rules_path={str(self.rules_path)!r})"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_ops_rules(rules: Rules, settings: Settings) -> None:
    """
    Validate operational requirements before startup.

    Raises RuntimeError when a required environment variable is missing.
    """
    missing = [name for name in rules.ops.required_env if name not in os.environ]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    if settings.secret_key == DEV_SECRET_KEY:
        logger.warning("RSVP_SECRET_KEY is not set; using the development signing key")

    logger.info("Configuration validated")
