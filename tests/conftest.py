"""
Shared pytest fixtures.

Every test starts with an empty adapter cache and a known, key-less
configuration so nothing leaks in from the developer's real .env.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Pin config.py to defaults and clear the cached adapter around each test."""
    import config
    import providers.manager as manager_mod

    monkeypatch.setattr(config, "AI_PROVIDER", "google")
    monkeypatch.setattr(config, "GOOGLE_AI_API_KEY", None)
    monkeypatch.setattr(config, "OPENAI_API_KEY", None)
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", None)
    monkeypatch.setattr(config, "AI_MODEL_NAME", None)
    monkeypatch.setattr(config, "AI_FALLBACK_MODELS", None)
    monkeypatch.setattr(config, "AI_MAX_RETRIES", 3)
    monkeypatch.setattr(config, "AI_INITIAL_RETRY_DELAY_MS", 1000)
    monkeypatch.setattr(config, "AI_RETRY_DELAY_MULTIPLIER", 2)
    monkeypatch.setattr(config, "AI_MAX_RETRY_DELAY_MS", 30000)
    monkeypatch.setattr(config, "AI_REQUEST_TIMEOUT", None)
    monkeypatch.setattr(config, "IMAGE_MIME_TYPE", "image/jpeg")

    manager_mod.reset_adapter()
    yield
    manager_mod.reset_adapter()
