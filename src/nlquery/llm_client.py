"""
LLM client abstraction -- provider-agnostic "generate text from prompt".

Supported providers:
  mock      -- echo back the prompt (for tests / offline dev)
  ollama    -- Ollama /generate over HTTP (gemma3:1b default)
  gemini    -- Google Generative Language generateContent over HTTP
  openai    -- OpenAI ChatCompletion (gpt-4o-mini default)
  anthropic -- Anthropic Messages (claude-3-haiku default)

Every call is a single stateless request.  Provider failures are raised as
``ProviderError`` (see provider_errors); timeouts as ``ProviderTimeoutError``.
Configuration is read from Settings (env / .env).
"""
from __future__ import annotations

import json
from typing import Any

import httpx

from src.core.config import get_settings
from src.core.logging import get_logger
from src.nlquery.errors import ProviderTimeoutError
from src.nlquery.provider_errors import parse_provider_error

logger = get_logger(__name__)


_OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
_ANTHROPIC_DEFAULT_MODEL = "claude-3-haiku-20240307"


def _client(timeout: float) -> httpx.Client:
    return httpx.Client(timeout=timeout, headers={"Content-Type": "application/json"})


def _post_json(url: str, payload: dict[str, Any], timeout: float, params: dict | None = None) -> Any:
    """POST *payload* and return the decoded body (or raw text if not JSON)."""
    try:
        with _client(timeout) as client:
            resp = client.post(url, json=payload, params=params)
            resp.raise_for_status()
    except httpx.TimeoutException as exc:
        raise ProviderTimeoutError(f"LLM provider timed out after {timeout:g}s") from exc
    except httpx.HTTPError as exc:
        raise parse_provider_error(exc) from exc

    try:
        return resp.json()
    except ValueError:
        return resp.text


def extract_text(data: Any) -> str:
    """Best-effort pull of the generated text out of a provider response body."""
    if not data:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in ("response", "text", "output"):
            if isinstance(data.get(key), str):
                return data[key]
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            c = choices[0]
            if isinstance(c.get("text"), str):
                return c["text"]
            content = (c.get("message") or {}).get("content")
            if isinstance(content, str):
                return content
    return json.dumps(data, ensure_ascii=False)



def _call_mock(prompt: str, timeout: float) -> str:
    logger.info("LLM mock mode -- returning echo")
    return f"[MOCK] {prompt[:200]}"



def _call_ollama(prompt: str, timeout: float) -> str:
    """Call an Ollama server's /generate endpoint (non-streaming)."""
    settings = get_settings()
    body = {"model": settings.llm_model, "prompt": prompt, "stream": False}
    data = _post_json(f"{settings.llm_base_url.rstrip('/')}/generate", body, timeout)
    text = extract_text(data)
    logger.info("Ollama response (%d chars)", len(text))
    return text



def _call_gemini(prompt: str, timeout: float) -> str:
    """Call the Gemini generateContent REST endpoint."""
    settings = get_settings()
    api_key = settings.llm_api_key
    if not api_key:
        raise RuntimeError(
            "llm_api_key is not set.  "
            "Set LLM_API_KEY in your .env file or environment."
        )

    url = f"{settings.gemini_base_url.rstrip('/')}/models/{settings.llm_model}:generateContent"
    body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
    data = _post_json(url, body, timeout, params={"key": api_key})

    text = ""
    if isinstance(data, dict):
        candidates = data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    else:
        text = extract_text(data)
    logger.info("Gemini response (%d chars)", len(text))
    return text



def _call_openai(prompt: str, timeout: float) -> str:
    """Call OpenAI ChatCompletion API."""
    settings = get_settings()
    api_key = settings.openai_api_key
    if not api_key:
        raise RuntimeError(
            "openai_api_key is not set.  "
            "Set OPENAI_API_KEY in your .env file or environment."
        )

    try:
        import openai  # type: ignore[import-untyped]
    except ImportError as exc:
        raise RuntimeError(
            "The 'openai' package is not installed.  "
            "Run: pip install openai"
        ) from exc

    client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
    try:
        response = client.chat.completions.create(
            model=_OPENAI_DEFAULT_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.0,
            max_tokens=512,
        )
    except openai.APITimeoutError as exc:
        raise ProviderTimeoutError(f"LLM provider timed out after {timeout:g}s") from exc
    except openai.APIError as exc:
        raise parse_provider_error(exc) from exc
    text = response.choices[0].message.content or ""
    logger.info("OpenAI response (%d chars)", len(text))
    return text



def _call_anthropic(prompt: str, timeout: float) -> str:
    """Call Anthropic Messages API."""
    settings = get_settings()
    api_key = settings.anthropic_api_key
    if not api_key:
        raise RuntimeError(
            "anthropic_api_key is not set.  "
            "Set ANTHROPIC_API_KEY in your .env file or environment."
        )

    try:
        import anthropic  # type: ignore[import-untyped]
    except ImportError as exc:
        raise RuntimeError(
            "The 'anthropic' package is not installed.  "
            "Run: pip install anthropic"
        ) from exc

    client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
    try:
        response = client.messages.create(
            model=_ANTHROPIC_DEFAULT_MODEL,
            max_tokens=512,
            messages=[{"role": "user", "content": prompt}],
        )
    except anthropic.APITimeoutError as exc:
        raise ProviderTimeoutError(f"LLM provider timed out after {timeout:g}s") from exc
    except anthropic.APIError as exc:
        raise parse_provider_error(exc) from exc
    text = response.content[0].text if response.content else ""
    logger.info("Anthropic response (%d chars)", len(text))
    return text



_PROVIDERS: dict[str, Any] = {
    "mock": _call_mock,
    "ollama": _call_ollama,
    "gemini": _call_gemini,
    "openai": _call_openai,
    "anthropic": _call_anthropic,
}


def resolve_provider(provider: str | None = None) -> str:
    return (provider or get_settings().llm_provider).lower()


def call_llm(prompt: str, provider: str | None = None, timeout: float | None = None) -> str:
    """Send *prompt* to the configured (or overridden) LLM provider.

    Parameters
    ----------
    prompt : str
        The full prompt text.
    provider : str, optional
        Override the provider from settings.  One of: mock, ollama, gemini,
        openai, anthropic.
    timeout : float, optional
        Seconds to wait for the reply; defaults to ``llm_timeout_s``.
    """
    provider = resolve_provider(provider)
    fn = _PROVIDERS.get(provider)
    if fn is None:
        raise NotImplementedError(
            f"LLM provider '{provider}' is not supported.  "
            f"Choose from: {', '.join(_PROVIDERS)}"
        )

    if timeout is None:
        timeout = get_settings().llm_timeout_s
    logger.info("Calling LLM provider=%s  prompt_len=%d", provider, len(prompt))
    return fn(prompt, timeout)
