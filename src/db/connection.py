"""SQLAlchemy engine & read-only connections.

Single shared engine with connection pooling.  NL queries run through
``readonly_connection``, which on PostgreSQL pins the transaction to
READ ONLY and applies a per-statement timeout.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine

from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None


def get_engine() -> Engine:
    """Return the shared SQLAlchemy engine (lazy-created, cached)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
            echo=False,
        )
        logger.info("DB engine created  dialect=%s", _engine.dialect.name)
    return _engine


@contextmanager
def readonly_connection(
    engine: Engine | None = None,
    timeout_ms: int | None = None,
) -> Generator[Connection, None, None]:
    """Yield a connection inside a read-only transaction.

    The transaction is always rolled back on exit; nothing a query does can
    persist.  The connection is returned to the pool afterwards.
    """
    engine = engine or get_engine()
    if timeout_ms is None:
        timeout_ms = get_settings().db_statement_timeout_ms

    with engine.connect() as conn:
        trans = conn.begin()
        try:
            if conn.dialect.name == "postgresql":
                conn.execute(text("SET TRANSACTION READ ONLY"))
                conn.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
            yield conn
        finally:
            trans.rollback()
