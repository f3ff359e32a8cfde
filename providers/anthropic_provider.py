"""
Anthropic vision provider — claude-3-5-sonnet with claude-3-haiku as fallback.
"""
from __future__ import annotations

import logging
import time

import anthropic

from providers.base import AnalysisRequest, VisionProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
FALLBACK_MODELS: tuple[str, ...] = ("claude-3-haiku-20240307",)

_MAX_TOKENS = 1024


class AnthropicProvider(VisionProvider):

    def __init__(self, api_key: str):
        self.name = "anthropic"
        self.display_name = "Anthropic (Claude)"
        self.default_model = DEFAULT_MODEL
        self.fallback_models = FALLBACK_MODELS
        self._client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)

    async def generate(self, model_id: str, request: AnalysisRequest) -> str:
        t0 = time.monotonic()

        message = await self._client.messages.create(
            model=model_id,
            max_tokens=_MAX_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.instruction_text},
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": request.mime_type,
                                "data": request.image_base64,
                            },
                        },
                    ],
                }
            ],
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] responded in %dms", self.full_name(model_id), latency_ms)
        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
