"""
Unit tests — provider error normalizer: envelopes, retry hints, fallbacks.
"""
import json
from types import SimpleNamespace

import httpx
import pytest

from src.nlquery.errors import ProviderError
from src.nlquery.provider_errors import parse_provider_error, parse_retry_delay

RATE_LIMITED = {
    "error": {
        "code": 429,
        "message": "rate limited",
        "details": [{"retryDelay": "13.5s"}],
    }
}


def _http_error(status: int, **response_kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://llm.example/generate")
    response = httpx.Response(status, request=request, **response_kwargs)
    return httpx.HTTPStatusError(f"Client error '{status}'", request=request, response=response)


# ── Duration parsing ─────────────────────────────────────

@pytest.mark.parametrize("value,expected", [
    ("13.5s", 14),
    ("13s", 13),
    ("0.2s", 1),
    ("7", 7),
    ("", None),
    ("soon", None),
    (None, None),
    (12, None),
])
def test_parse_retry_delay(value, expected):
    assert parse_retry_delay(value) == expected


# ── (a) structured envelope ──────────────────────────────

def test_rate_limited_envelope():
    err = parse_provider_error(_http_error(429, json=RATE_LIMITED))
    assert isinstance(err, ProviderError)
    assert err.message == "rate limited"
    assert err.status_code == 429
    assert err.retry_after_seconds == 14


def test_google_retry_info_type():
    body = {"error": {
        "code": 429,
        "message": "Quota exceeded",
        "details": [
            {"@type": "type.googleapis.com/google.rpc.QuotaFailure", "violations": []},
            {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "41s"},
        ],
    }}
    err = parse_provider_error(_http_error(429, json=body))
    assert err.retry_after_seconds == 41
    assert err.message == "Quota exceeded"


def test_envelope_code_wins_over_transport_status():
    body = {"error": {"code": 503, "message": "overloaded"}}
    err = parse_provider_error(_http_error(500, json=body))
    assert err.status_code == 503
    assert err.retry_after_seconds is None


def test_envelope_without_code_uses_transport_status():
    err = parse_provider_error(_http_error(400, json={"error": {"message": "bad request"}}))
    assert err.status_code == 400
    assert err.message == "bad request"


def test_string_error_field():
    err = parse_provider_error(_http_error(404, json={"error": "model 'gemma3:1b' not found"}))
    assert err.message == "model 'gemma3:1b' not found"
    assert err.status_code == 404


def test_malformed_details_ignored():
    body = {"error": {"code": 429, "message": "slow down", "details": ["x", {"retryDelay": 5}, None]}}
    err = parse_provider_error(_http_error(429, json=body))
    assert err.retry_after_seconds is None
    assert err.status_code == 429


# ── (b) envelope delivered as a string ───────────────────

def test_string_envelope_is_parsed():
    err = parse_provider_error(SimpleNamespace(message="boom", data=json.dumps(RATE_LIMITED)))
    assert err.message == "rate limited"
    assert err.status_code == 429
    assert err.retry_after_seconds == 14


def test_text_body_with_json_is_parsed():
    err = parse_provider_error(_http_error(429, text=json.dumps(RATE_LIMITED)))
    assert err.retry_after_seconds == 14


def test_non_json_text_body_keeps_raw_message():
    err = parse_provider_error(_http_error(502, text="<html>Bad Gateway</html>"))
    assert err.message == "Client error '502'"
    assert err.status_code == 502


# ── SDK-style errors ─────────────────────────────────────

def test_sdk_body_inner_error_object():
    exc = SimpleNamespace(
        message="Error code: 429",
        status_code=429,
        body={"message": "Rate limit reached", "type": "requests", "code": "rate_limit_exceeded"},
    )
    err = parse_provider_error(exc)
    assert err.message == "Rate limit reached"
    assert err.status_code == 429  # non-numeric code falls back to transport


# ── (c) no envelope: scrape the message ──────────────────

def test_retry_delay_scraped_from_message():
    exc = RuntimeError('quota exceeded: {"@type": "RetryInfo", "retryDelay": "22.1s"}')
    err = parse_provider_error(exc)
    assert err.retry_after_seconds == 23
    assert err.status_code is None
    assert "quota exceeded" in err.message


def test_plain_exception_fallback():
    err = parse_provider_error(ValueError("connection reset"))
    assert err.message == "connection reset"
    assert err.status_code is None
    assert err.retry_after_seconds is None


def test_empty_exception_uses_class_name():
    assert parse_provider_error(ConnectionError()).message == "ConnectionError"


def test_provider_error_passes_through():
    original = ProviderError("already normalized", status_code=500)
    assert parse_provider_error(original) is original


def test_to_dict_includes_hints():
    err = parse_provider_error(_http_error(429, json=RATE_LIMITED))
    assert err.to_dict() == {
        "error": "rate limited",
        "kind": "provider_error",
        "statusCode": 429,
        "retryAfterSeconds": 14,
    }
