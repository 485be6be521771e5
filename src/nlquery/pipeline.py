"""
NL query service -- orchestrates translate -> validate -> compile -> execute.

Strictly sequential per request; the only suspension points are the model
call and the store call.  Nothing is cached between requests: every question
is translated from scratch.  Failures propagate unchanged as NLQueryError
subclasses; turning them into responses is the caller's job.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.engine import Engine

from src.core.logging import get_logger
from src.core.utils import compact_json, timer
from src.db.executor import execute
from src.governance.validator import validate_spec
from src.governance.whitelist import WhitelistSchema, load_whitelist
from src.nlquery.compiler import compile_spec
from src.nlquery.spec import QuerySpec
from src.nlquery.translator import translate

logger = get_logger(__name__)


@dataclass
class QueryResult:
    spec: QuerySpec
    rows: list[dict[str, Any]]
    latency_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"spec": self.spec.model_dump(), "rows": self.rows}


def run_spec(
    raw_spec: Any,
    schema: WhitelistSchema | None = None,
    engine: Engine | None = None,
) -> tuple[QuerySpec, list[dict[str, Any]]]:
    """validate -> compile -> execute for an already-translated spec."""
    if schema is None:
        schema = load_whitelist()
    spec = validate_spec(raw_spec, schema)
    query = compile_spec(spec, schema)
    rows = execute(query, spec.table, engine=engine)
    return spec, rows


def run_query(
    text: str,
    schema: WhitelistSchema | None = None,
    provider: str | None = None,
    engine: Engine | None = None,
) -> QueryResult:
    """End-to-end: natural-language text -> {spec, rows}.

    Parameters
    ----------
    text : str
        The caller's free-text request.
    schema : WhitelistSchema, optional
        Whitelist to enforce; defaults to the one loaded from disk.
    provider : str, optional
        LLM provider override (mock | ollama | gemini | openai | anthropic).
    engine : Engine, optional
        Store engine override; defaults to the shared engine.
    """
    if schema is None:
        schema = load_whitelist()
    logger.info("NL query: %s", text)

    with timer() as t:
        raw_spec = translate(text, schema, provider=provider)
        spec, rows = run_spec(raw_spec, schema, engine=engine)

    logger.debug("Canonical spec: %s", compact_json(spec.model_dump()))
    logger.info("NL query done | table=%s rows=%d latency_ms=%d",
                spec.table, len(rows), t["elapsed_ms"])
    return QueryResult(spec=spec, rows=rows, latency_ms=t["elapsed_ms"])
