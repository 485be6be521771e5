"""
Query compiler — turns a validated QuerySpec into a store-neutral CompiledQuery.

The compiled form is a predicate tree plus a projection:

  predicate.fields     {"title": [Condition("contains", "sql")]}
  predicate.relations  {"user": {"username": [Condition("equals", "x")]}}
  projection           ("id", "title", "createdAt")
  relation_projection  {"user": ("id", "username")}

Dotted filter fields make exactly one relation hop: ``a.b.c`` is relation
``a``, subfield ``b.c``.  Operator → store predicate mapping is fixed and
every value ends up as a bound parameter.
"""
from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Callable

from src.governance.whitelist import RELATION_SEPARATOR, WhitelistSchema, load_whitelist
from src.nlquery.spec import QuerySpec


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _equals(column: Any, value: Any) -> Any:
    return column.is_(None) if value is None else column == value


def _contains(column: Any, value: Any) -> Any:
    return column.ilike(f"%{_escape_like(str(value))}%", escape="\\")


def _in(column: Any, value: Any) -> Any:
    return column.in_(list(value))


STORE_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "equals": _equals,
    "contains": _contains,
    "in": _in,
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
}


@dataclass(frozen=True)
class Condition:
    op: str
    value: Any

    def clause(self, column: Any) -> Any:
        """Apply this condition to a SQLAlchemy column expression."""
        return STORE_OPERATORS[self.op](column, self.value)


@dataclass(frozen=True)
class Predicate:
    fields: dict[str, list[Condition]] = field(default_factory=dict)
    relations: dict[str, dict[str, list[Condition]]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.fields and not self.relations


@dataclass(frozen=True)
class CompiledQuery:
    table: str
    predicate: Predicate
    projection: tuple[str, ...]
    limit: int
    relation_projection: dict[str, tuple[str, ...]] = field(default_factory=dict)


def split_field(name: str) -> tuple[str | None, str]:
    """``"user.username"`` → ``("user", "username")``; plain names → ``(None, name)``."""
    if RELATION_SEPARATOR not in name:
        return None, name
    rel, sub = name.split(RELATION_SEPARATOR, 1)
    return rel, sub


def compile_spec(spec: QuerySpec, schema: WhitelistSchema | None = None) -> CompiledQuery:
    """Pure: a validated spec in, a fresh CompiledQuery out."""
    if schema is None:
        schema = load_whitelist()
    table = schema.table(spec.table)

    fields: dict[str, list[Condition]] = {}
    relations: dict[str, dict[str, list[Condition]]] = {}
    for f in spec.filters:
        cond = Condition(op=f.op, value=f.value)
        if not f.is_relation:
            fields.setdefault(f.field, []).append(cond)
        else:
            rel, sub = split_field(f.field)
            relations.setdefault(rel, {}).setdefault(sub, []).append(cond)

    relation_projection: dict[str, tuple[str, ...]] = {}
    for rel in relations:
        declared = table.relation(rel) if table else None
        relation_projection[rel] = declared.identifying if declared else ("id",)

    return CompiledQuery(
        table=spec.table,
        predicate=Predicate(fields=fields, relations=relations),
        projection=tuple(spec.fields),
        limit=spec.limit,
        relation_projection=relation_projection,
    )
