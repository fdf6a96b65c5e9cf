"""Database session management.

SQLite engines are cached per database file; foreign keys are switched on
for every connection so ON DELETE CASCADE applies to survey children.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from quorum.db.schema import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data/quorum.db")
DB_PATH_ENV = "QUORUM_DB_PATH"

_engine_cache: dict[str, Engine] = {}
_session_factory_cache: dict[str, sessionmaker] = {}


def resolve_db_path(db_path: Path | str | None = None) -> Path:
    """Pick the database file: explicit argument, then $QUORUM_DB_PATH, then default."""
    if db_path is not None:
        return Path(db_path)
    env_path = os.environ.get(DB_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_DB_PATH


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for each new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine(db_path: Path | str | None = None) -> Engine:
    """Get the cached SQLAlchemy engine for a database file.

    StaticPool with check_same_thread=False lets FastAPI worker threads
    share the single SQLite connection.

    Args:
        db_path: SQLite database file, see resolve_db_path.

    Returns:
        SQLAlchemy engine instance (cached).
    """
    path = resolve_db_path(db_path)
    cache_key = str(path.resolve())

    engine = _engine_cache.get(cache_key)
    if engine is not None:
        return engine

    path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        f"sqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    _engine_cache[cache_key] = engine
    logger.info(f"Opened database at {path}")
    return engine


def get_session(db_path: Path | str | None = None) -> Session:
    """Get a new session. The caller closes it."""
    path = resolve_db_path(db_path)
    cache_key = str(path.resolve())

    factory = _session_factory_cache.get(cache_key)
    if factory is None:
        factory = sessionmaker(bind=get_engine(path))
        _session_factory_cache[cache_key] = factory
    return factory()


@contextmanager
def get_db_session(db_path: Path | str | None = None) -> Generator[Session, None, None]:
    """Session scope: commit on success, roll back on exception, always close.

    Example:
        with get_db_session() as session:
            repo.replace_options(session, survey_id, labels)
    """
    session = get_session(db_path)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Create all tables. Call once at application startup."""
    Base.metadata.create_all(get_engine(db_path))
