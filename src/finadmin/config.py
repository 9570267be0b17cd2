"""Runtime configuration.

Settings are read from the environment (a local .env file is loaded first).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

HighSpenderMode = Literal["per_user", "per_transaction"]

DEFAULT_DB_PATH = Path("data/finadmin.db")
DEFAULT_JWT_EXPIRES_MINUTES = 60
DEFAULT_STORE_TIMEOUT_S = 5.0
DEFAULT_CORS_ORIGINS = ("http://localhost:5173",)

# Used only when FINADMIN_JWT_SECRET is unset (local development)
DEV_JWT_SECRET = "finadmin-dev-secret"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        db_path: SQLite database file.
        jwt_secret: HMAC secret for signing admin tokens.
        jwt_expires_minutes: Token lifetime.
        cors_origins: Origins allowed to call the API from a browser.
        store_timeout_s: Busy timeout for store reads/writes.
        high_spender_mode: Threshold basis for the high-spender metric.
        log_level: Root log level name.
    """

    db_path: Path = DEFAULT_DB_PATH
    jwt_secret: str = DEV_JWT_SECRET
    jwt_expires_minutes: int = DEFAULT_JWT_EXPIRES_MINUTES
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    store_timeout_s: float = DEFAULT_STORE_TIMEOUT_S
    high_spender_mode: HighSpenderMode = "per_user"
    log_level: str = "INFO"


def _parse_mode(value: str) -> HighSpenderMode:
    if value not in ("per_user", "per_transaction"):
        raise ValueError(f"Invalid FINADMIN_HIGH_SPENDER_MODE: {value}")
    return value  # type: ignore[return-value]


def get_settings() -> Settings:
    """Load settings from the environment.

    Returns:
        Settings populated from FINADMIN_* variables, with defaults.
    """
    load_dotenv()

    secret = os.environ.get("FINADMIN_JWT_SECRET")
    if not secret:
        logger.warning("FINADMIN_JWT_SECRET not set, using development secret")
        secret = DEV_JWT_SECRET

    origins = os.environ.get("FINADMIN_CORS_ORIGINS")
    cors_origins = (
        tuple(o.strip() for o in origins.split(",") if o.strip())
        if origins
        else DEFAULT_CORS_ORIGINS
    )

    return Settings(
        db_path=Path(os.environ.get("FINADMIN_DB_PATH", str(DEFAULT_DB_PATH))),
        jwt_secret=secret,
        jwt_expires_minutes=int(
            os.environ.get("FINADMIN_JWT_EXPIRES_MINUTES", DEFAULT_JWT_EXPIRES_MINUTES)
        ),
        cors_origins=cors_origins,
        store_timeout_s=float(
            os.environ.get("FINADMIN_STORE_TIMEOUT_S", DEFAULT_STORE_TIMEOUT_S)
        ),
        high_spender_mode=_parse_mode(os.environ.get("FINADMIN_HIGH_SPENDER_MODE", "per_user")),
        log_level=os.environ.get("FINADMIN_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
