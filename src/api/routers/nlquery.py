"""POST /api/nlquery -- natural-language query endpoint."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine

from src.api.deps import engine_dep, whitelist_dep
from src.core.logging import get_logger
from src.governance.whitelist import WhitelistSchema
from src.nlquery.errors import NLQueryError
from src.nlquery.pipeline import run_query

logger = get_logger(__name__)
router = APIRouter()



MAX_QUERY_CHARS = 2000


class NLQueryRequest(BaseModel):
    q: Any = Field(None, description="Natural-language request")


@router.post("")
def nlquery_endpoint(
    req: NLQueryRequest,
    schema: WhitelistSchema = Depends(whitelist_dep),
    engine: Engine = Depends(engine_dep),
) -> dict[str, Any]:
    """Full pipeline: text -> spec -> validate -> compile -> execute.

    Errors come back as ``{"error": message, "kind": tag}`` with HTTP 200.
    """
    if not isinstance(req.q, str) or not req.q.strip():
        return {"error": "No query"}
    if len(req.q) > MAX_QUERY_CHARS:
        return {"error": "Query too long", "kind": "query_too_long"}

    try:
        result = run_query(req.q, schema=schema, engine=engine)
    except NLQueryError as exc:
        logger.warning("NL query rejected | kind=%s | %s", exc.kind, exc.message)
        return exc.to_dict()
    except Exception:
        logger.exception("NL query failed")
        return {"error": "Internal error", "kind": "internal_error"}

    return result.to_dict()
