"""
Small shared utilities.
"""
from __future__ import annotations

import json
import time
from contextlib import contextmanager
from typing import Any, Generator


@contextmanager
def timer() -> Generator[dict, None, None]:
    """Context manager that records elapsed wall-clock milliseconds."""
    result: dict = {}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["elapsed_ms"] = int((time.perf_counter() - start) * 1000)


def truncate(text: str, limit: int = 200) -> str:
    """Shorten *text* for log lines."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def compact_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
