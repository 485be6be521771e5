"""
QuerySpec -- the structured intermediate representation between
natural language and the relational store.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

FilterOp = Literal["equals", "contains", "in", "lt", "lte", "gt", "gte"]

OPERATORS: tuple[str, ...] = ("equals", "contains", "in", "lt", "lte", "gt", "gte")


class Filter(BaseModel):
    """One predicate: ``field`` may be dotted (``user.username``) for a relation hop."""

    field: str = Field(..., description="Field name, or relation.subfield")
    op: FilterOp
    value: Any = None

    @property
    def is_relation(self) -> bool:
        return "." in self.field


class QuerySpec(BaseModel):
    """Canonical (sanitized) query spec."""

    action: Literal["select"] = "select"
    table: str = Field(..., description="Whitelisted table name, e.g. 'Blog'")
    fields: list[str] = Field(default_factory=list, description="Fields to return, in order")
    filters: list[Filter] = Field(default_factory=list)
    limit: int = Field(10, ge=1, description="Maximum rows to return")
