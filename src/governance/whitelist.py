"""
Loads, parses, and caches the whitelist YAML into immutable, typed objects.

The whitelist is the single source of truth for:
  - which tables a query spec may name
  - which fields of each table may be projected or filtered
  - which one-hop relations a dotted filter field may traverse
  - default projection, default limit and the hard row cap

It is built once at start-up and handed by reference to the translator,
validator and compiler.  Tests build alternate schemas with
``parse_whitelist(dict)``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from src.core.config import get_settings

RELATION_SEPARATOR = "."


# ── Typed domain objects ─────────────────────────────────

@dataclass(frozen=True)
class RelationSchema:
    name: str
    table: str
    identifying: tuple[str, ...] = ()


@dataclass(frozen=True)
class TableSchema:
    name: str
    fields: tuple[str, ...]
    relations: Mapping[str, RelationSchema] = field(default_factory=lambda: MappingProxyType({}))

    def allows(self, field_name: str) -> bool:
        return field_name in self.fields

    def relation(self, name: str) -> RelationSchema | None:
        return self.relations.get(name)


@dataclass(frozen=True)
class WhitelistSchema:
    """Fully parsed whitelist.  Read-only; safe to share across requests."""

    version: int
    tables: Mapping[str, TableSchema]
    default_fields: tuple[str, ...] = ("id", "title", "createdAt")
    default_limit: int = 10
    max_limit: int = 100

    # ── Convenience look-ups ─────────────────────────

    def table(self, name: str) -> TableSchema | None:
        if not isinstance(name, str):
            return None
        return self.tables.get(name)

    def table_names(self) -> list[str]:
        return list(self.tables.keys())

    def allowed_fields(self, table_name: str) -> tuple[str, ...]:
        tbl = self.table(table_name)
        return tbl.fields if tbl else ()

    def resolve_filter_field(self, table_name: str, field_name: str) -> bool:
        """True if *field_name* is a plain allowed field of the table or a
        ``relation.subfield`` reachable through a declared relation."""
        tbl = self.table(table_name)
        if tbl is None:
            return False
        if RELATION_SEPARATOR not in field_name:
            return tbl.allows(field_name)
        rel_name, sub = field_name.split(RELATION_SEPARATOR, 1)
        rel = tbl.relation(rel_name)
        if rel is None:
            return False
        target = self.table(rel.table)
        return target is not None and target.allows(sub)

    def catalog(self) -> dict[str, Any]:
        """Plain-dict view for API responses."""
        return {
            "tables": [
                {
                    "name": t.name,
                    "fields": list(t.fields),
                    "relations": [
                        {"name": r.name, "table": r.table, "identifying": list(r.identifying)}
                        for r in t.relations.values()
                    ],
                }
                for t in self.tables.values()
            ],
            "default_fields": list(self.default_fields),
            "default_limit": self.default_limit,
            "max_limit": self.max_limit,
        }


# ── Parsing ──────────────────────────────────────────────

def _parse_relation(raw: dict[str, Any]) -> RelationSchema:
    return RelationSchema(
        name=raw["name"],
        table=raw["table"],
        identifying=tuple(raw.get("identifying") or ("id",)),
    )


def _parse_table(raw: dict[str, Any]) -> TableSchema:
    relations = {r["name"]: _parse_relation(r) for r in raw.get("relations") or []}
    return TableSchema(
        name=raw["name"],
        fields=tuple(dict.fromkeys(raw.get("fields") or [])),
        relations=MappingProxyType(relations),
    )


def parse_whitelist(raw: dict[str, Any]) -> WhitelistSchema:
    """Build a WhitelistSchema from an already-loaded YAML/dict document."""
    tables = {t["name"]: _parse_table(t) for t in raw.get("tables", [])}
    for tbl in tables.values():
        for rel in tbl.relations.values():
            if rel.table not in tables:
                raise ValueError(
                    f"Relation '{tbl.name}.{rel.name}' points at unknown table '{rel.table}'"
                )

    defaults = raw.get("defaults") or {}
    max_limit = int(defaults.get("max_limit", 100))
    default_limit = int(defaults.get("limit", 10))
    if not 0 < default_limit <= max_limit:
        raise ValueError(f"Default limit {default_limit} must be within 1..{max_limit}")

    return WhitelistSchema(
        version=raw.get("version", 1),
        tables=MappingProxyType(tables),
        default_fields=tuple(defaults.get("fields") or ("id", "title", "createdAt")),
        default_limit=default_limit,
        max_limit=max_limit,
    )


# ── Public API ───────────────────────────────────────────

@lru_cache
def _load_from(path: str) -> WhitelistSchema:
    with open(Path(path), encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return parse_whitelist(raw)


def load_whitelist(path: str | None = None) -> WhitelistSchema:
    """Load and cache the whitelist (default path comes from settings)."""
    return _load_from(path or get_settings().whitelist_path)
