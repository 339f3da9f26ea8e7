"""Centralized logging helpers.

Provides a single configure_logging() entrypoint plus small utilities used by
every module: structured `extra` payloads, debug guards, credential redaction
for URLs and a monotonic Timer.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from constants import Constants

_LEVEL_ENV = f"{Constants.ENV_PREFIX}_LOG_LEVEL"
_SENSITIVE_QUERY_RE = re.compile(r"(?i)((?:token|password|secret|key|auth)[^=&]*=)[^&]*")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    Level precedence: explicit argument, then NPMGATE_LOG_LEVEL, then INFO.
    """
    level_name = (level or os.environ.get(_LEVEL_ENV) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by logger."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an `extra` mapping for structured log records, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def redact(text: str, secrets: Optional[list] = None) -> str:
    """Replace each known secret occurring in text with [REDACTED]."""
    if not text:
        return text
    out = text
    for secret in secrets or []:
        if secret:
            out = out.replace(secret, "[REDACTED]")
    return out


def safe_url(url: str) -> str:
    """Strip userinfo and sensitive query values from a URL for logging."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]
    query = _SENSITIVE_QUERY_RE.sub(r"\1[REDACTED]", parts.query)
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, live while the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
