"""
Translator — converts a natural-language request into a raw query spec dict.

Two modes:
  mock     → deterministic keyword extraction (no model needed, great for tests)
  ollama / gemini / openai / anthropic → LLM-backed, via llm_client

The model is asked for JSON only, but replies are often wrapped in prose, so
parsing is two-stage: strict ``json.loads`` of the whole reply, then the
first-``{``-to-last-``}`` substring.  The result is *not* sanitized here; the
validator owns that.
"""
from __future__ import annotations

import json
import re
from typing import Any

from src.core.logging import get_logger
from src.core.utils import compact_json, truncate
from src.governance.whitelist import WhitelistSchema, load_whitelist
from src.nlquery.errors import TranslationError
from src.nlquery.llm_client import call_llm, resolve_provider
from src.nlquery.spec import OPERATORS

logger = get_logger(__name__)

_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

# ── Prompt ───────────────────────────────────────────────

_PROMPT_TEMPLATE = """\
You are a helpful assistant that translates natural language requests into a JSON "query spec".
Return ONLY valid JSON (no explanation). The JSON must follow this schema:

{{
  "action": "select",      // only "select" is allowed
  "table": "<TableName>",  // e.g. {table_examples}
  "fields": ["id","title","content"], // list of fields to return (optional => defaults)
  "filters": [             // optional list of filter objects
     {{ "field": "user.username", "op": "equals", "value": "Jane Doe" }}
  ],
  "limit": 3               // integer, max {max_limit}
}}

Rules:
- Only return a JSON object exactly following the schema.
- Allowed ops: {operators}.
- Table names must be one of: {tables}.
- Limit must be an integer <= {max_limit}. If the user doesn't specify, default limit={default_limit}.
- For nested filters use dot notation (e.g. "user.username").
- Do NOT output SQL, code, or any explanation -- only the JSON object.

Examples:
Input: "Get 3 blog posts by the author Jane Doe"
Output:
{{"action":"select","table":"Blog","fields":["id","title","content","createdAt"],"filters":[{{"field":"user.username","op":"equals","value":"Jane Doe"}}],"limit":3}}

Input: "Show me the 5 latest posts"
Output:
{{"action":"select","table":"Blog","fields":["id","title","createdAt"],"filters":[],"limit":5}}
"""


def build_prompt(text: str, schema: WhitelistSchema) -> str:
    tables = schema.table_names()
    instructions = _PROMPT_TEMPLATE.format(
        table_examples=", ".join(f'"{t}"' for t in tables[:3]),
        tables=", ".join(tables),
        operators=", ".join(OPERATORS),
        max_limit=schema.max_limit,
        default_limit=schema.default_limit,
    )
    return f"{instructions}\n\nInput: {json.dumps(text, ensure_ascii=False)}\nOutput:"


# ── Parsing ──────────────────────────────────────────────

def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_spec_text(raw: str) -> dict[str, Any]:
    """Recover a single JSON object from a (possibly chatty) model reply."""
    text = (raw or "").strip()

    parsed = _loads_object(text)
    if parsed is not None:
        return parsed

    m = _OBJECT_RE.search(text)
    if m:
        parsed = _loads_object(m.group(0))
        if parsed is not None:
            return parsed

    logger.warning("No JSON object in model reply: %s", truncate(text))
    raise TranslationError()


# ── Mock translator ──────────────────────────────────────

_TABLE_KEYWORDS: dict[str, list[str]] = {
    "Blog":         ["blog", "post", "article"],
    "User":         ["user", "author", "member"],
    "Comment":      ["comment", "reply", "replies"],
    "Tag":          ["tag"],
    "Like":         ["likes", "liked"],
    "Conversation": ["conversation", "chat", "group"],
    "Message":      ["message"],
}

_LIMIT_RE = re.compile(r"\b(\d{1,4})\b")
_AUTHOR_RE = re.compile(
    r"\b(?:by|from|of)\s+(?:the\s+)?(?:author|user|writer)\s+[\"']?(.+?)[\"']?\s*[.?!]?\s*$",
    re.IGNORECASE,
)
_CONTAINS_RE = re.compile(
    r"\b(?:about|titled|mentioning|containing)\s+[\"']?([^\"']+?)[\"']?\s*[.?!]?\s*$",
    re.IGNORECASE,
)


def _mock_table(q: str, schema: WhitelistSchema) -> str:
    best, best_pos = None, len(q) + 1
    for name, keywords in _TABLE_KEYWORDS.items():
        if schema.table(name) is None:
            continue
        for kw in keywords:
            pos = q.find(kw)
            if pos != -1 and pos < best_pos:
                best, best_pos = name, pos
    if best:
        return best
    names = schema.table_names()
    return "Blog" if "Blog" in names else names[0]


def _mock_reply(text: str, schema: WhitelistSchema) -> str:
    """Deterministic keyword-based NL → JSON spec text."""
    q = text.lower().strip()
    table = _mock_table(q, schema)
    spec: dict[str, Any] = {"action": "select", "table": table, "filters": []}

    m = _LIMIT_RE.search(q)
    if m:
        spec["limit"] = int(m.group(1))

    m = _AUTHOR_RE.search(text.strip())
    if m and schema.resolve_filter_field(table, "user.username"):
        spec["filters"].append({"field": "user.username", "op": "equals", "value": m.group(1)})
    else:
        m = _CONTAINS_RE.search(text.strip())
        if m and schema.resolve_filter_field(table, "title"):
            spec["filters"].append({"field": "title", "op": "contains", "value": m.group(1)})

    return json.dumps(spec, ensure_ascii=False)


# ── Public API ───────────────────────────────────────────

def translate(
    text: str,
    schema: WhitelistSchema | None = None,
    provider: str | None = None,
) -> dict[str, Any]:
    """Turn *text* into a raw (unvalidated) spec dict.

    Raises ``TranslationError`` when no JSON object can be recovered and
    ``ProviderError`` when the model call itself fails.  No retries.
    """
    if schema is None:
        schema = load_whitelist()
    provider = resolve_provider(provider)

    if provider == "mock":
        reply = _mock_reply(text, schema)
    else:
        reply = call_llm(build_prompt(text, schema), provider=provider)

    spec = parse_spec_text(reply)
    logger.info("Translator[%s] -> %s", provider, compact_json(spec))
    return spec
