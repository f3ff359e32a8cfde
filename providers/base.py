"""
Shared types and base class for all vision providers.
"""
from __future__ import annotations

import base64
import binascii
from abc import ABC, abstractmethod
from dataclasses import dataclass

from errors import ValidationError


# ── Request type ───────────────────────────────────────────────────────────────

def strip_data_url(image_data: str) -> str:
    """
    Return the base64 payload of either a bare base64 string or a data URL
    (data:image/jpeg;base64,<payload>). Splits on the first comma only.
    """
    if "," in image_data:
        return image_data.split(",", 1)[1]
    return image_data


@dataclass(frozen=True)
class AnalysisRequest:
    """One photo + one instruction, created once per user action."""
    image_bytes: bytes
    mime_type: str
    instruction_text: str

    @classmethod
    def from_image_data(
        cls,
        image_data: str,
        instruction_text: str,
        mime_type: str = "image/jpeg",
    ) -> AnalysisRequest:
        # Line-wrapped base64 is common when the payload came from a file
        payload = "".join(strip_data_url(image_data).split())
        if not payload:
            raise ValidationError("Image data is empty")
        try:
            image_bytes = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(f"Image data is not valid base64: {exc}") from exc
        if not instruction_text or not instruction_text.strip():
            raise ValidationError("Instruction text is empty")
        return cls(image_bytes=image_bytes, mime_type=mime_type, instruction_text=instruction_text)

    @property
    def image_base64(self) -> str:
        return base64.b64encode(self.image_bytes).decode("ascii")


# ── Abstract base ──────────────────────────────────────────────────────────────

class VisionProvider(ABC):
    """
    Base class all vision providers must implement.

    A provider is a plain transport: one call, one model, raw text back.
    SDK exceptions must propagate unmodified. Retries and fallback live in
    providers/adapter.py.
    """

    name: str                           # e.g. "google"
    display_name: str                   # e.g. "Google AI (Gemini)"
    default_model: str                  # primary model when none is configured
    fallback_models: tuple[str, ...] = ()

    @abstractmethod
    async def generate(self, model_id: str, request: AnalysisRequest) -> str:
        """Run one vision inference against model_id. Returns the raw model text."""
        ...

    def full_name(self, model_id: str) -> str:
        return f"{self.name}/{model_id}"
