"""
Database engine, session factory and declarative base.

The ledger runs unchanged on SQLite (local work, tests) and PostgreSQL.
SQLite gets foreign-key enforcement switched on per connection so that
``ON DELETE CASCADE`` on ``budget_release.adjustment_id`` behaves the same
as on PostgreSQL.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from budget_ledger.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine for *url* with the options each backend needs.

    Args:
        url: SQLAlchemy database URL.
        **kwargs: Extra keyword arguments forwarded to ``create_engine``.

    Returns:
        A configured ``Engine``.
    """
    if _is_sqlite(url):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 3600)

    new_engine = create_engine(url, echo=settings.DEBUG, **kwargs)

    if _is_sqlite(url):

        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
