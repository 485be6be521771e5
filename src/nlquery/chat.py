"""
Plain chat passthrough: free text in, model text out.

Same call pattern as the translator but with no validation or execution.
Never raises: failures are logged and answered with a fixed fallback text.
"""
from __future__ import annotations

from typing import Any

from src.core.config import get_settings
from src.core.logging import get_logger
from src.nlquery.llm_client import call_llm
from src.nlquery.provider_errors import parse_provider_error

logger = get_logger(__name__)

FALLBACK_TEXT = "Error: failed to generate response"


def chat(message: Any, provider: str | None = None) -> dict[str, str]:
    if not isinstance(message, str) or not message.strip():
        return {"text": ""}

    try:
        text = call_llm(message, provider=provider, timeout=get_settings().chat_timeout_s)
    except Exception as exc:
        err = parse_provider_error(exc)
        logger.error("Chat request failed: %s (status=%s, retry_after=%s)",
                     err.message, err.status_code, err.retry_after_seconds)
        return {"text": FALLBACK_TEXT}

    return {"text": text or ""}
