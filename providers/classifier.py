"""
Error classifier — maps any failure raised by a provider to one of a small,
closed set of recovery-relevant kinds.

The classifier is pure and attempt-agnostic: deciding whether to wait,
switch model or give up is providers/retry.py's job.

Order matters:
  1. rate limited       ("429", "quota", "rate limit")      → wait & retry
  2. model unavailable  ("404", "not found", ...)           → switch model
  3. fatal              (auth / permission markers)         → logged as such,
                                                              retried like transient
  4. anything else      → transient
"""
from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

_RATE_LIMIT_MARKERS = ("429", "quota", "rate limit")
_MODEL_UNAVAILABLE_MARKERS = ("404", "not found", "is not found for api version")
_FATAL_MARKERS = ("401", "403", "permission denied", "api key not valid", "invalid api key")

# "Please retry in 2.5s" / "retry in 17s" / "retry in .5s"
_RETRY_HINT_RE = re.compile(r"retry in (\d*\.?\d+)s", re.IGNORECASE)

# Attributes SDK exceptions use for the HTTP status:
#   openai / anthropic → status_code, google-genai → code
_STATUS_ATTRS = ("status_code", "code")


class ErrorKind(enum.Enum):
    RATE_LIMITED = "rate_limited"
    MODEL_UNAVAILABLE = "model_unavailable"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass(frozen=True)
class ErrorClassification:
    kind: ErrorKind
    retry_after_ms: Optional[int] = None   # only for RATE_LIMITED, when the provider says so

    def __str__(self) -> str:
        if self.retry_after_ms is not None:
            return f"{self.kind.value} (retry after {self.retry_after_ms}ms)"
        return self.kind.value


def error_text(error: object) -> str:
    """Stringify any caught error value, surfacing a typed HTTP status if present."""
    if isinstance(error, str):
        return error
    parts: list[str] = []
    for attr in _STATUS_ATTRS:
        status = getattr(error, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            parts.append(f"HTTP {status}")
            break
    if isinstance(error, BaseException):
        parts.append(f"{type(error).__name__}: {error}")
    else:
        parts.append(str(error))
    return " ".join(parts)


def extract_retry_delay(text: str) -> Optional[int]:
    """Return the provider-suggested delay in ms ("retry in 2.5s" → 2500), or None."""
    match = _RETRY_HINT_RE.search(text)
    if not match:
        return None
    return math.ceil(Decimal(match.group(1)) * 1000)


def classify(error: object) -> ErrorClassification:
    """Classify a provider failure. Never raises."""
    try:
        text = error_text(error)
    except Exception:
        return ErrorClassification(ErrorKind.TRANSIENT)
    lowered = text.lower()

    if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return ErrorClassification(ErrorKind.RATE_LIMITED, extract_retry_delay(text))
    if any(marker in lowered for marker in _MODEL_UNAVAILABLE_MARKERS):
        return ErrorClassification(ErrorKind.MODEL_UNAVAILABLE)
    if any(marker in lowered for marker in _FATAL_MARKERS):
        return ErrorClassification(ErrorKind.FATAL)
    return ErrorClassification(ErrorKind.TRANSIENT)
