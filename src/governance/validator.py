"""
Validates and sanitizes a raw query spec against the whitelist.

Rules, in order:
  0. action must be "select"; table must be whitelisted      (rejected)
  1. limit → default when missing/non-numeric/<= 0, clamped to max_limit
  2. no fields requested → default projection ∩ allowed fields
  3. requested fields → keep allowed ones; none left         (rejected)
  4. filters → keep well-formed ones on whitelisted fields/relations,
     drop the rest silently

This is the injection boundary: every field name and operator that reaches
the compiler has been matched against the whitelist.  Filter *values* are
left alone; they are bound as query parameters downstream.
"""
from __future__ import annotations

import math
from typing import Any

from src.core.logging import get_logger
from src.governance.whitelist import WhitelistSchema, load_whitelist
from src.nlquery.errors import NoAllowedFieldsError, UnknownTableError, UnsupportedActionError
from src.nlquery.spec import OPERATORS, Filter, QuerySpec

logger = get_logger(__name__)

_SCALARS = (str, int, float)


def sanitize_limit(value: Any, schema: WhitelistSchema) -> int:
    """Missing / non-numeric / zero / negative → default; above max → max."""
    if isinstance(value, bool):
        return schema.default_limit
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return schema.default_limit
    if not isinstance(value, (int, float)):
        return schema.default_limit
    if isinstance(value, float) and not math.isfinite(value):
        return schema.max_limit if value > 0 else schema.default_limit

    n = int(value)
    if n <= 0:
        return schema.default_limit
    return min(n, schema.max_limit)


def sanitize_fields(table: str, fields: Any, schema: WhitelistSchema) -> list[str]:
    allowed = schema.allowed_fields(table)

    if not isinstance(fields, list) or not fields:
        defaults = [f for f in schema.default_fields if f in allowed]
        if not defaults:
            raise NoAllowedFieldsError()
        return defaults

    kept = [f for f in fields if isinstance(f, str) and f in allowed]
    kept = list(dict.fromkeys(kept))
    if not kept:
        raise NoAllowedFieldsError()
    dropped = len(fields) - len(kept)
    if dropped:
        logger.debug("Dropped %d non-whitelisted field(s) for table=%s", dropped, table)
    return kept


def _is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALARS)


def _sanitize_filter(entry: Any, table: str, schema: WhitelistSchema) -> Filter | None:
    if not isinstance(entry, dict):
        return None
    field, op = entry.get("field"), entry.get("op")
    if not isinstance(field, str) or not isinstance(op, str) or op not in OPERATORS:
        return None
    if not schema.resolve_filter_field(table, field):
        return None

    value = entry.get("value")
    if op == "in":
        if not isinstance(value, list) or not all(v is None or _is_scalar(v) for v in value):
            return None
    elif op == "equals":
        if value is not None and not _is_scalar(value):
            return None
    elif not _is_scalar(value):
        return None

    return Filter(field=field, op=op, value=value)


def sanitize_filters(table: str, filters: Any, schema: WhitelistSchema) -> list[Filter]:
    if not isinstance(filters, list):
        return []
    kept: list[Filter] = []
    for entry in filters:
        f = _sanitize_filter(entry, table, schema)
        if f is None:
            logger.debug("Dropping malformed filter %r", entry)
            continue
        kept.append(f)
    return kept


def validate_spec(raw: Any, schema: WhitelistSchema | None = None) -> QuerySpec:
    """Return the canonical QuerySpec for *raw*, or raise a SpecValidationError.

    Parameters
    ----------
    raw : Any
        Whatever the translator recovered from the model reply.
    schema : WhitelistSchema, optional
        If None, loads the default whitelist from disk.
    """
    if schema is None:
        schema = load_whitelist()

    if not isinstance(raw, dict) or raw.get("action") != "select":
        raise UnsupportedActionError()

    table = raw.get("table")
    if schema.table(table) is None:
        raise UnknownTableError()

    limit = sanitize_limit(raw.get("limit"), schema)
    fields = sanitize_fields(table, raw.get("fields"), schema)
    filters = sanitize_filters(table, raw.get("filters"), schema)

    return QuerySpec(action="select", table=table, fields=fields, filters=filters, limit=limit)
