"""Database session management.

Provides session factory for SQLite database access with proper
thread-safety for FastAPI concurrency.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from finadmin.config import DEFAULT_DB_PATH, DEFAULT_STORE_TIMEOUT_S
from finadmin.db.schema import Base

# Module-level engine cache for connection pooling
_engine_cache: dict[tuple[str, float], Engine] = {}

# Module-level session factory cache
_session_factory_cache: dict[tuple[str, float], sessionmaker] = {}


def _cache_key(db_path: Path | None, timeout_s: float) -> tuple[Path, tuple[str, float]]:
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    db_path = Path(db_path)
    return db_path, (str(db_path.resolve()), float(timeout_s))


def get_engine(
    db_path: Path | None = None,
    timeout_s: float = DEFAULT_STORE_TIMEOUT_S,
) -> Engine:
    """Get SQLAlchemy engine for the database.

    Engines are cached by resolved db_path and busy timeout. Each session
    checks out its own pooled connection, so transactions never leak
    between requests. The SQLite busy timeout bounds how long a read or
    write waits on a locked database before failing.

    Args:
        db_path: Path to SQLite database file. Defaults to data/finadmin.db.
        timeout_s: Seconds to wait on a locked database.

    Returns:
        SQLAlchemy engine instance (cached).
    """
    db_path, cache_key = _cache_key(db_path, timeout_s)

    if cache_key in _engine_cache:
        return _engine_cache[cache_key]

    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": timeout_s},
    )
    _engine_cache[cache_key] = engine

    return engine


def _get_session_factory(
    db_path: Path | None = None,
    timeout_s: float = DEFAULT_STORE_TIMEOUT_S,
) -> sessionmaker:
    """Get cached session factory for the database."""
    db_path, cache_key = _cache_key(db_path, timeout_s)

    if cache_key in _session_factory_cache:
        return _session_factory_cache[cache_key]

    engine = get_engine(db_path, timeout_s)
    factory = sessionmaker(bind=engine)
    _session_factory_cache[cache_key] = factory

    return factory


def get_session(
    db_path: Path | None = None,
    timeout_s: float = DEFAULT_STORE_TIMEOUT_S,
) -> Session:
    """Get a database session.

    Note: Caller is responsible for closing the session.

    Args:
        db_path: Path to SQLite database file.
        timeout_s: Seconds to wait on a locked database.

    Returns:
        SQLAlchemy Session instance.
    """
    factory = _get_session_factory(db_path, timeout_s)
    return factory()


def init_db(
    db_path: Path | None = None,
    timeout_s: float = DEFAULT_STORE_TIMEOUT_S,
) -> None:
    """Initialize database schema.

    Call this once during application startup to create tables.
    """
    engine = get_engine(db_path, timeout_s)
    Base.metadata.create_all(engine)
