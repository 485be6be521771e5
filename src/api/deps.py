"""Request-scoped dependencies (overridable in tests via ``app.dependency_overrides``)."""
from __future__ import annotations

from sqlalchemy.engine import Engine

from src.db.connection import get_engine
from src.governance.whitelist import WhitelistSchema, load_whitelist


def whitelist_dep() -> WhitelistSchema:
    return load_whitelist()


def engine_dep() -> Engine:
    return get_engine()
