"""
Read-only query executor.

Dispatches a CompiledQuery to a per-table handler.  ``TableName`` is the
closed set of table variants; ``_HANDLERS`` says which of them are wired to
the store.  Anything else raises ``UnimplementedTableError``.

Each handler:
  1. Builds a SQLAlchemy ``select`` from the projection / predicate / limit
     (all values are bound parameters, never interpolated)
  2. Owns its relation rules (which relations exist, how they join, how the
     related entity is nested in the output rows)
  3. Runs inside ``readonly_connection`` (READ ONLY + statement_timeout on
     Postgres)
"""
from __future__ import annotations

import datetime
import decimal
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from sqlalchemy import Column, Table, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError

from src.core.logging import get_logger
from src.db import models
from src.db.connection import readonly_connection
from src.nlquery.compiler import CompiledQuery
from src.nlquery.errors import StoreTimeoutError, UnimplementedTableError

logger = get_logger(__name__)

_RELATION_LABEL_SEP = "__"


class TableName(str, Enum):
    BLOG = "Blog"
    USER = "User"
    COMMENT = "Comment"
    TAG = "Tag"
    LIKE = "Like"
    CONVERSATION = "Conversation"
    MESSAGE = "Message"


@dataclass(frozen=True)
class RelationJoin:
    """To-one relation: ``local`` on the base table points at ``remote`` on ``target``."""

    target: Table
    local: Column
    remote: Column


def _serialise_value(val: Any) -> Any:
    """Convert DB types to JSON-serialisable Python types."""
    if isinstance(val, decimal.Decimal):
        return float(val)
    if isinstance(val, (datetime.date, datetime.datetime)):
        return val.isoformat()
    if isinstance(val, datetime.timedelta):
        return str(val)
    return val


def _find_many(
    conn: Connection,
    table: Table,
    query: CompiledQuery,
    relations: dict[str, RelationJoin],
) -> list[dict[str, Any]]:
    """Generic "find many with predicate, projection and limit" for one table."""
    columns = [table.c[f].label(f) for f in query.projection]
    source = table
    where = []

    for name, conds in query.predicate.fields.items():
        where.extend(c.clause(table.c[name]) for c in conds)

    nested: list[tuple[str, str]] = []
    for rel, subfields in query.predicate.relations.items():
        join = relations.get(rel)
        if join is None:
            raise UnimplementedTableError(f"{table.name}.{rel}")
        target = join.target.alias(f"{rel}_rel")
        source = source.join(target, join.local == target.c[join.remote.name])
        for sub, conds in subfields.items():
            where.extend(c.clause(target.c[sub]) for c in conds)
        for ident in query.relation_projection.get(rel, ()):
            columns.append(target.c[ident].label(f"{rel}{_RELATION_LABEL_SEP}{ident}"))
            nested.append((rel, ident))

    stmt = select(*columns).select_from(source).where(*where)
    if "createdAt" in table.c:
        stmt = stmt.order_by(table.c.createdAt.desc(), table.c.id.desc())
    stmt = stmt.limit(query.limit)

    rows: list[dict[str, Any]] = []
    for row in conn.execute(stmt).mappings():
        out = {f: _serialise_value(row[f]) for f in query.projection}
        for rel, ident in nested:
            label = f"{rel}{_RELATION_LABEL_SEP}{ident}"
            out.setdefault(rel, {})[ident] = _serialise_value(row[label])
        rows.append(out)
    return rows


# ── Per-table handlers ───────────────────────────────────

def _find_blogs(conn: Connection, query: CompiledQuery) -> list[dict[str, Any]]:
    # A user.* filter joins the author and returns it nested as row["user"].
    relations = {
        "user": RelationJoin(target=models.users, local=models.blogs.c.userId, remote=models.users.c.id),
    }
    return _find_many(conn, models.blogs, query, relations)


_HANDLERS: dict[TableName, Callable[[Connection, CompiledQuery], list[dict[str, Any]]]] = {
    TableName.BLOG: _find_blogs,
}


def _is_statement_timeout(exc: OperationalError) -> bool:
    return "statement timeout" in str(getattr(exc, "orig", exc)).lower()


def execute(
    query: CompiledQuery,
    table: str | None = None,
    engine: Engine | None = None,
    timeout_ms: int | None = None,
) -> list[dict[str, Any]]:
    """Run *query* against the store and return rows as serialisable dicts.

    Raises
    ------
    UnimplementedTableError
        If the table has no handler yet.
    StoreTimeoutError
        If the store cancels the statement for exceeding its timeout.
    """
    name = table or query.table
    try:
        variant = TableName(name)
    except ValueError:
        raise UnimplementedTableError(name) from None
    handler = _HANDLERS.get(variant)
    if handler is None:
        raise UnimplementedTableError(name)

    logger.info("Executing %s query  limit=%d", variant.value, query.limit)
    try:
        with readonly_connection(engine, timeout_ms=timeout_ms) as conn:
            rows = handler(conn, query)
    except OperationalError as exc:
        if _is_statement_timeout(exc):
            raise StoreTimeoutError("Query timed out") from exc
        raise

    logger.info("Returned %d rows", len(rows))
    return rows
