"""
Central configuration — reads from .env file.

Everything here is consumed, not owned, by the analysis pipeline:
providers/manager.py reads these module attributes when it builds the
adapter, so tests (or an embedding app) can monkeypatch them and call
providers.manager.reset_adapter() to pick up the change.
"""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _csv(raw: Optional[str]) -> Optional[tuple[str, ...]]:
    """
    Parse a comma-separated list.
    None (variable unset) means "use the provider's defaults";
    an empty string means "no fallbacks at all".
    """
    if raw is None:
        return None
    return tuple(x.strip() for x in raw.split(",") if x.strip())


def _optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    return float(raw)


# ── AI provider ───────────────────────────────────────────────────────────────
# google | openai | anthropic
AI_PROVIDER: str = os.getenv("AI_PROVIDER", "google").strip().lower()

# Add the key for whichever provider is selected above.
GOOGLE_AI_API_KEY: str | None = os.getenv("GOOGLE_AI_API_KEY") or os.getenv("GOOGLE_API_KEY")
OPENAI_API_KEY: str | None    = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")

# ── Models ────────────────────────────────────────────────────────────────────
# Leave unset to use the provider's built-in primary model / fallback list.
#   AI_MODEL_NAME=gemini-2.5-flash
#   AI_FALLBACK_MODELS=gemini-2.0-flash,gemini-1.5-pro
AI_MODEL_NAME: str | None                   = os.getenv("AI_MODEL_NAME", "").strip() or None
AI_FALLBACK_MODELS: tuple[str, ...] | None  = _csv(os.getenv("AI_FALLBACK_MODELS"))

# ── Retry behaviour ───────────────────────────────────────────────────────────
# MAX_RETRIES=3 → 4 attempts per model (attempt 0 plus 3 retries)
AI_MAX_RETRIES: int             = int(os.getenv("AI_MAX_RETRIES", "3"))
AI_INITIAL_RETRY_DELAY_MS: int  = int(os.getenv("AI_INITIAL_RETRY_DELAY_MS", "1000"))
AI_RETRY_DELAY_MULTIPLIER: int  = int(os.getenv("AI_RETRY_DELAY_MULTIPLIER", "2"))
# Upper bound for computed backoff waits (provider hints are used as given); 0 disables the cap.
AI_MAX_RETRY_DELAY_MS: int      = int(os.getenv("AI_MAX_RETRY_DELAY_MS", "30000"))

# Whole-call deadline in seconds used by the CLI; unset = no deadline
AI_REQUEST_TIMEOUT: float | None = _optional_float(os.getenv("AI_REQUEST_TIMEOUT"))

# ── Image ─────────────────────────────────────────────────────────────────────
# Photos are compressed to JPEG upstream, so the MIME type is fixed.
IMAGE_MIME_TYPE: str = os.getenv("IMAGE_MIME_TYPE", "image/jpeg")

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
