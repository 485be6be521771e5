"""
GET /api/schema -- whitelist catalog (what the NL query endpoint may touch).
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import whitelist_dep
from src.governance.whitelist import WhitelistSchema
from src.nlquery.spec import OPERATORS

router = APIRouter()



class RelationItem(BaseModel):
    name: str
    table: str
    identifying: list[str]


class TableItem(BaseModel):
    name: str
    fields: list[str]
    relations: list[RelationItem]


class CatalogResponse(BaseModel):
    tables: list[TableItem]
    operators: list[str]
    default_fields: list[str]
    default_limit: int
    max_limit: int



@router.get("/schema", response_model=CatalogResponse)
def schema_catalog(schema: WhitelistSchema = Depends(whitelist_dep)) -> CatalogResponse:
    """Return the whitelisted tables, fields, relations and operators."""
    return CatalogResponse(operators=list(OPERATORS), **schema.catalog())


@router.get("/schema/tables")
def list_tables(schema: WhitelistSchema = Depends(whitelist_dep)) -> dict:
    """Return table names only (lightweight)."""
    return {"tables": schema.table_names()}
