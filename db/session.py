"""
db/session.py

Lazily-built SQLAlchemy engine and the session entry points used by the API
(`get_db`) and by scripts (`session_scope`).
"""

from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import get_bool_env, get_int_env, resolve_database_url

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def create_db_engine() -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    # A continuation call holds its connection across one batch of fetches.
    return create_engine(
        database_url,
        echo=get_bool_env("SQL_ECHO"),
        pool_pre_ping=True,
        pool_recycle=get_int_env("DB_POOL_RECYCLE", 1800),
        pool_size=get_int_env("DB_POOL_SIZE", 10),
        max_overflow=get_int_env("DB_MAX_OVERFLOW", 10),
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    """New session bound to the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency; the session is closed after the response."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts; rolls back anything left uncommitted on error."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
