"""
OpenAI vision provider — gpt-4o with gpt-4o-mini as fallback.

openai.APIStatusError subclasses expose `.status_code` and stringify as
"Error code: 429 - {...}", which providers/classifier.py understands.
"""
from __future__ import annotations

import logging
import time

from openai import AsyncOpenAI

from providers.base import AnalysisRequest, VisionProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
FALLBACK_MODELS: tuple[str, ...] = ("gpt-4o-mini",)


class OpenAIProvider(VisionProvider):

    def __init__(self, api_key: str):
        self.name = "openai"
        self.display_name = "OpenAI"
        self.default_model = DEFAULT_MODEL
        self.fallback_models = FALLBACK_MODELS
        # Retries are owned by the adapter, not the SDK
        self._client = AsyncOpenAI(api_key=api_key, max_retries=0)

    async def generate(self, model_id: str, request: AnalysisRequest) -> str:
        t0 = time.monotonic()

        response = await self._client.chat.completions.create(
            model=model_id,
            temperature=0,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.instruction_text},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{request.mime_type};base64,{request.image_base64}",
                            },
                        },
                    ],
                },
            ],
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] responded in %dms", self.full_name(model_id), latency_ms)
        content = response.choices[0].message.content
        return content or ""
