"""
Error taxonomy for the NL query pipeline.

Every failure that may reach a caller is an ``NLQueryError`` with a short
``kind`` tag and a ``message`` that is safe to show to users (it only names
whitelisted concepts, never stack traces or raw provider payloads).
"""
from __future__ import annotations

from typing import Any


class NLQueryError(Exception):
    kind = "nlquery_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "kind": self.kind}


class TranslationError(NLQueryError):
    """No JSON object could be recovered from the model output."""

    kind = "translation_failed"

    def __init__(self, message: str = "Failed to parse JSON spec from model response"):
        super().__init__(message)


# ── Schema violations (raised by the validator) ─────────

class SpecValidationError(NLQueryError):
    kind = "invalid_spec"


class UnsupportedActionError(SpecValidationError):
    kind = "unsupported_action"

    def __init__(self, message: str = "Only select action supported"):
        super().__init__(message)


class UnknownTableError(SpecValidationError):
    kind = "unknown_table"

    def __init__(self, message: str = "Table not allowed"):
        super().__init__(message)


class NoAllowedFieldsError(SpecValidationError):
    kind = "no_allowed_fields"

    def __init__(self, message: str = "No allowed fields requested"):
        super().__init__(message)


# ── Execution ───────────────────────────────────────────

class UnimplementedTableError(NLQueryError):
    kind = "unimplemented_table"

    def __init__(self, table: str):
        super().__init__(f"Table '{table}' not implemented in server mapping yet")
        self.table = table


class StoreTimeoutError(NLQueryError):
    kind = "store_timeout"


# ── Language-model provider ─────────────────────────────

class ProviderError(NLQueryError):
    """Normalized failure of a language-model provider call."""

    kind = "provider_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after_seconds: int | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        if self.status_code is not None:
            out["statusCode"] = self.status_code
        if self.retry_after_seconds is not None:
            out["retryAfterSeconds"] = self.retry_after_seconds
        return out

    def __repr__(self) -> str:
        return (
            f"ProviderError(message={self.message!r}, status_code={self.status_code!r}, "
            f"retry_after_seconds={self.retry_after_seconds!r})"
        )


class ProviderTimeoutError(ProviderError):
    kind = "provider_timeout"
