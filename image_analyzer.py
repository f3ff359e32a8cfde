"""
image_analyzer.py — inbound entry point of the analysis pipeline.

Accepts the image the way the web layer hands it over (bare base64 or a
data URL) and returns the model's raw text. Parsing that text into a
nutrition record is the caller's job.
"""
from __future__ import annotations

from typing import Optional

import config
from providers.adapter import AnalysisAdapter
from providers.base import AnalysisRequest
from providers.manager import get_adapter


async def analyze_image(
    image_data: str,
    instruction_text: str,
    *,
    adapter: Optional[AnalysisAdapter] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Raises ValidationError for unusable input, ConfigurationError when no
    adapter can be built, AnalysisServiceError when every model failed.
    """
    request = AnalysisRequest.from_image_data(
        image_data, instruction_text, mime_type=config.IMAGE_MIME_TYPE,
    )
    if adapter is None:
        adapter = get_adapter()
    return await adapter.analyze(request, timeout=timeout)
