"""
Google Gemini vision provider — uses the google-genai SDK.

Errors raised by the SDK (google.genai.errors.APIError and subclasses) carry
the HTTP status in `.code` and usually a "Please retry in 12.3s" hint in the
message on 429 RESOURCE_EXHAUSTED; both are read by providers/classifier.py.
"""
from __future__ import annotations

import logging
import time

from google import genai
from google.genai import types as genai_types

from providers.base import AnalysisRequest, VisionProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
FALLBACK_MODELS: tuple[str, ...] = ("gemini-pro", "gemini-1.5-pro-001")


class GeminiProvider(VisionProvider):

    def __init__(self, api_key: str):
        self.name            = "google"
        self.display_name    = "Google AI (Gemini)"
        self.default_model   = DEFAULT_MODEL
        self.fallback_models = FALLBACK_MODELS
        self._client         = genai.Client(api_key=api_key)

    async def generate(self, model_id: str, request: AnalysisRequest) -> str:
        t0 = time.monotonic()

        response = await self._client.aio.models.generate_content(
            model=model_id,
            contents=[
                request.instruction_text,
                genai_types.Part.from_bytes(data=request.image_bytes, mime_type=request.mime_type),
            ],
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] responded in %dms", self.full_name(model_id), latency_ms)

        # No text (safety block, no candidates) counts as a failed attempt
        if response.text is None:
            feedback = getattr(response, "prompt_feedback", None)
            block_reason = getattr(feedback, "block_reason", None)
            raise ValueError(
                f"[{self.full_name(model_id)}] Empty response (block_reason={block_reason})"
            )
        return response.text
