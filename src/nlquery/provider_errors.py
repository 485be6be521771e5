"""
Provider error normalizer -- turns whatever a language-model call raised into
a uniform ``ProviderError`` (message, status code, retry-after hint).

Google-style error envelopes look like::

    {"error": {"code": 429, "message": "rate limited",
               "details": [{"@type": "type.googleapis.com/google.rpc.RetryInfo",
                            "retryDelay": "13.5s"}]}}

This is text/JSON scraping, not a retry policy: callers decide what to do
with ``retry_after_seconds``.
"""
from __future__ import annotations

import json
import math
import re
from typing import Any

from src.nlquery.errors import ProviderError

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)")
_RETRY_DELAY_RE = re.compile(r'"retryDelay"\s*:\s*"(.*?)"')


def parse_retry_delay(value: Any) -> int | None:
    """``"13.5s"`` -> 14.  Anything unparseable -> None."""
    if not isinstance(value, str):
        return None
    m = _DURATION_RE.search(value)
    if not m:
        return None
    return math.ceil(float(m.group(1)))


def _read_response_body(response: Any) -> Any:
    try:
        return response.json()
    except (ValueError, AttributeError, RuntimeError):
        pass
    try:
        return getattr(response, "text", None) or None
    except RuntimeError:
        # httpx raises ResponseNotRead for unread streaming bodies
        return None


def _extract_envelope(err: Any) -> Any:
    response = getattr(err, "response", None)
    if response is not None:
        data = _read_response_body(response)
        if data:
            return data
    for attr in ("body", "data"):
        data = getattr(err, attr, None)
        if data:
            return data
    return None


def _transport_status(err: Any) -> int | None:
    response = getattr(err, "response", None)
    status = getattr(response, "status_code", None) or getattr(err, "status_code", None)
    return status if isinstance(status, int) else None


def _apply_envelope(out: dict[str, Any], data: dict[str, Any]) -> None:
    if "error" in data:
        error = data["error"]
    elif "message" in data:
        error = data  # SDKs sometimes hand over the inner error object
    else:
        return

    if isinstance(error, str):
        out["message"] = error
        return
    if not isinstance(error, dict):
        return

    message = error.get("message")
    if isinstance(message, str) and message:
        out["message"] = message
    code = error.get("code")
    if isinstance(code, int) and not isinstance(code, bool):
        out["status_code"] = code

    details = error.get("details")
    if isinstance(details, list):
        for d in details:
            if not isinstance(d, dict):
                continue
            if "RetryInfo" in str(d.get("@type", "")) or "retryDelay" in d:
                delay = parse_retry_delay(d.get("retryDelay"))
                if delay is not None:
                    out["retry_after_seconds"] = delay


def parse_provider_error(err: Any) -> ProviderError:
    """Best-effort normalization.  Never raises."""
    if isinstance(err, ProviderError):
        return err

    raw_message = getattr(err, "message", None)
    if not isinstance(raw_message, str) or not raw_message:
        raw_message = str(err) or err.__class__.__name__
    out: dict[str, Any] = {"message": raw_message, "status_code": None, "retry_after_seconds": None}

    data = _extract_envelope(err)
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            pass

    if isinstance(data, dict):
        _apply_envelope(out, data)
    elif data is None:
        m = _RETRY_DELAY_RE.search(raw_message)
        if m:
            out["retry_after_seconds"] = parse_retry_delay(m.group(1))

    if out["status_code"] is None:
        out["status_code"] = _transport_status(err)
    return ProviderError(**out)
