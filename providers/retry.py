"""
Retry policy — turns (classification, attempt index, position in the model
chain) into exactly one of three actions:

  Wait(delay_ms)   retry the same model after delay_ms (0 = immediately)
  AdvanceModel()   give up on this model, try the next one
  Fail(cause)      give up on the whole request

Attempt indices start at 0, so max_retries=3 allows attempts 0..3.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from providers.classifier import ErrorClassification, ErrorKind


@dataclass(frozen=True)
class Wait:
    delay_ms: int


@dataclass(frozen=True)
class AdvanceModel:
    pass


@dataclass(frozen=True)
class Fail:
    cause: ErrorKind


Decision = Union[Wait, AdvanceModel, Fail]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    initial_delay_ms: int = 1000
    multiplier: int = 2
    max_delay_ms: Optional[int] = 30_000   # None → uncapped

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay_ms < 0 or self.multiplier < 1:
            raise ValueError("initial_delay_ms must be >= 0 and multiplier >= 1")
        if self.max_delay_ms is not None and self.max_delay_ms < 0:
            raise ValueError(f"max_delay_ms must be >= 0 or None, got {self.max_delay_ms}")

    def backoff_ms(self, attempt_index: int, hint_ms: Optional[int] = None) -> int:
        """Provider hint if given (never shortened), else initial × multiplier^attempt, capped."""
        if hint_ms is not None:
            return hint_ms
        delay = self.initial_delay_ms * self.multiplier ** attempt_index
        if self.max_delay_ms is not None:
            delay = min(delay, self.max_delay_ms)
        return delay

    def decide(
        self,
        classification: ErrorClassification,
        attempt_index: int,
        *,
        is_last_model: bool,
    ) -> Decision:
        kind = classification.kind
        exhausted = attempt_index >= self.max_retries

        if kind is ErrorKind.MODEL_UNAVAILABLE:
            # Waiting won't make a missing model appear
            return Fail(kind) if is_last_model else AdvanceModel()

        if not exhausted:
            if kind is ErrorKind.RATE_LIMITED:
                return Wait(self.backoff_ms(attempt_index, classification.retry_after_ms))
            return Wait(0)

        return Fail(kind) if is_last_model else AdvanceModel()
