"""
Analysis adapter — the orchestrator.

  for model in chain:
      for attempt in 0..max_retries:
          provider.generate(model, request)
            ok   → return text
            fail → classify → policy.decide → Wait / AdvanceModel / Fail

Strictly sequential: one provider call in flight per analyze() call, and
nothing mutable is shared between calls (the chain and the attempt trail
are built fresh every time). Every non-success path ends in a single
AnalysisServiceError.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from errors import AnalysisServiceError, format_error_for_logging
from providers.base import AnalysisRequest, VisionProvider
from providers.chain import ModelFallbackChain
from providers.classifier import ErrorKind, classify
from providers.retry import AdvanceModel, Fail, RetryPolicy, Wait

logger = logging.getLogger(__name__)


class AttemptOutcome(enum.Enum):
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"       # fatal for this model, not necessarily the request


@dataclass(frozen=True)
class ModelAttemptRecord:
    model_id: str
    attempt_index: int
    outcome: AttemptOutcome
    wait_ms: Optional[int] = None


class AnalysisAdapter:

    def __init__(
        self,
        provider: VisionProvider,
        *,
        primary_model: Optional[str] = None,
        fallback_models: Optional[Iterable[str]] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.provider = provider
        self.primary_model = primary_model or provider.default_model
        self.fallback_models: tuple[str, ...] = tuple(
            provider.fallback_models if fallback_models is None else fallback_models
        )
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def provider_name(self) -> str:
        return self.provider.name

    @property
    def display_name(self) -> str:
        return self.provider.display_name

    def model_chain(self) -> ModelFallbackChain:
        return ModelFallbackChain(self.primary_model, self.fallback_models)

    async def analyze(self, request: AnalysisRequest, *, timeout: Optional[float] = None) -> str:
        """
        Return the raw model text for request, or raise AnalysisServiceError.

        timeout (seconds) bounds the whole call including backoff waits.
        Cancelling the calling task cancels the in-flight attempt or wait.
        """
        if timeout is None:
            return await self._run(request)
        try:
            return await asyncio.wait_for(self._run(request), timeout)
        except asyncio.TimeoutError as exc:
            logger.error("[%s] analysis timed out after %gs", self.provider_name, timeout)
            raise AnalysisServiceError(f"Image analysis timed out after {timeout:g}s") from exc

    async def _run(self, request: AnalysisRequest) -> str:
        chain = self.model_chain()
        attempts: list[ModelAttemptRecord] = []
        last_error: Optional[BaseException] = None

        for model_id in chain:
            tag = self.provider.full_name(model_id)
            for attempt in range(self.policy.max_retries + 1):
                try:
                    text = await self.provider.generate(model_id, request)
                except Exception as exc:
                    last_error = exc
                    classification = classify(exc)
                    decision = self.policy.decide(
                        classification, attempt, is_last_model=chain.is_last(),
                    )

                    if isinstance(decision, Wait):
                        attempts.append(ModelAttemptRecord(
                            model_id, attempt, AttemptOutcome.RETRYABLE_FAILURE, decision.delay_ms,
                        ))
                        logger.warning(
                            "[%s] attempt %d/%d failed (%s) — retrying in %dms: %s",
                            tag, attempt + 1, self.policy.max_retries + 1, classification,
                            decision.delay_ms, format_error_for_logging(exc),
                        )
                        if decision.delay_ms > 0:
                            await self._sleep(decision.delay_ms / 1000)
                        continue

                    attempts.append(ModelAttemptRecord(model_id, attempt, AttemptOutcome.FATAL_FAILURE))

                    if isinstance(decision, AdvanceModel):
                        logger.warning(
                            "[%s] giving up on model after attempt %d (%s), trying fallback: %s",
                            tag, attempt + 1, classification, format_error_for_logging(exc),
                        )
                        break

                    message = self._failure_message(decision, chain)
                    logger.error(
                        "[%s] all models failed (%s): %s",
                        tag, classification, format_error_for_logging(exc),
                    )
                    raise AnalysisServiceError(message, attempts=tuple(attempts)) from exc
                else:
                    attempts.append(ModelAttemptRecord(model_id, attempt, AttemptOutcome.SUCCESS))
                    logger.info("[%s] OK on attempt %d", tag, attempt + 1)
                    return text

        # Unreachable with a consistent policy; kept so no path returns None
        raise AnalysisServiceError(
            f"Failed to analyze image after trying all models. Tried: {', '.join(chain.all())}.",
            attempts=tuple(attempts),
        ) from last_error

    def _failure_message(self, decision: Fail, chain: ModelFallbackChain) -> str:
        tried = ", ".join(chain.all())
        if decision.cause is ErrorKind.MODEL_UNAVAILABLE:
            return (
                f"No available models found. Tried: {tried}. "
                f"Please check your {self.display_name} API configuration."
            )
        return f"Failed to analyze image after retries. Tried: {tried}."
