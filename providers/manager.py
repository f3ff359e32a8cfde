"""
Provider Manager — builds the AnalysisAdapter for the configured provider.

Settings are read from config.py every time an adapter is built, so the
only process-wide state is the cached adapter below. Callers that want full
control construct an AnalysisAdapter themselves and pass it around instead.

Providers:
  google     — Gemini via google-genai     (GOOGLE_AI_API_KEY)
  openai     — GPT-4o via openai           (OPENAI_API_KEY)
  anthropic  — Claude via anthropic        (ANTHROPIC_API_KEY)
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from errors import ConfigurationError
from providers.adapter import AnalysisAdapter
from providers.base import VisionProvider
from providers.retry import RetryPolicy

logger = logging.getLogger(__name__)

PROVIDER_NAMES: tuple[str, ...] = ("google", "openai", "anthropic")

# Module-level cache — cleared by reset_adapter()
_adapter: Optional[AnalysisAdapter] = None


def _require_key(value: Optional[str], env_name: str, provider_name: str) -> str:
    if not value:
        raise ConfigurationError(
            f"AI provider '{provider_name}' selected but {env_name} is not set"
        )
    return value


def _build_provider(provider_name: str) -> VisionProvider:
    """Instantiate the provider SDK wrapper. SDKs are imported lazily."""
    if provider_name == "google":
        from providers.gemini_provider import GeminiProvider
        return GeminiProvider(_require_key(config.GOOGLE_AI_API_KEY, "GOOGLE_AI_API_KEY", provider_name))
    if provider_name == "openai":
        from providers.openai_provider import OpenAIProvider
        return OpenAIProvider(_require_key(config.OPENAI_API_KEY, "OPENAI_API_KEY", provider_name))
    if provider_name == "anthropic":
        from providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(_require_key(config.ANTHROPIC_API_KEY, "ANTHROPIC_API_KEY", provider_name))

    available = ", ".join(PROVIDER_NAMES)
    raise ConfigurationError(f"Unsupported AI provider: '{provider_name}'. Available: {available}")


def build_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=config.AI_MAX_RETRIES,
        initial_delay_ms=config.AI_INITIAL_RETRY_DELAY_MS,
        multiplier=config.AI_RETRY_DELAY_MULTIPLIER,
        max_delay_ms=config.AI_MAX_RETRY_DELAY_MS or None,
    )


def build_adapter(provider_name: Optional[str] = None) -> AnalysisAdapter:
    """Build a fresh adapter from config. Does not touch the cache."""
    name = (provider_name or config.AI_PROVIDER).strip().lower()
    provider = _build_provider(name)
    try:
        adapter = AnalysisAdapter(
            provider,
            primary_model=config.AI_MODEL_NAME,
            fallback_models=config.AI_FALLBACK_MODELS,
            policy=build_policy(),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid retry configuration: {exc}") from exc
    logger.info(
        "Loaded provider: %s — models: %s",
        adapter.display_name, ", ".join(adapter.model_chain().all()),
    )
    return adapter


def get_adapter() -> AnalysisAdapter:
    global _adapter
    if _adapter is None:
        _adapter = build_adapter()
    return _adapter


def reset_adapter() -> None:
    """Drop the cached adapter; the next get_adapter() rebuilds it from config."""
    global _adapter
    _adapter = None
