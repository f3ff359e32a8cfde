"""
Tests for providers/adapter.py — the orchestration loop.

Covers:
  - success on first attempt, no sleeps
  - rate limit → wait (hint or backoff) → retry same model
  - model unavailable → exactly one call, then next model
  - transient on a single model → exactly max_retries + 1 calls, then fail
  - terminal error names every model, chains the provider error, carries attempts
  - strict ordering of attempts across models
  - no state leaks between calls
  - timeout and cancellation
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from errors import AnalysisServiceError
from providers.adapter import AnalysisAdapter, AttemptOutcome, ModelAttemptRecord
from providers.base import AnalysisRequest, VisionProvider
from providers.retry import RetryPolicy

REQUEST = AnalysisRequest(image_bytes=b"\xff\xd8jpeg", mime_type="image/jpeg", instruction_text="Analyse")


class ScriptedProvider(VisionProvider):
    """
    Provider whose outcome per call is scripted: a per-model list of
    results/exceptions (the last entry repeats), or a single default.
    """

    def __init__(self, script=None, default="ok", fallbacks=("B",)):
        self.name = "fake"
        self.display_name = "Fake AI"
        self.default_model = "A"
        self.fallback_models = tuple(fallbacks)
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.default = default
        self.calls: list[str] = []

    async def generate(self, model_id: str, request: AnalysisRequest) -> str:
        self.calls.append(model_id)
        steps = self.script.get(model_id)
        outcome = (steps.pop(0) if len(steps) > 1 else steps[0]) if steps else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_adapter(provider, **kwargs):
    sleep = kwargs.pop("sleep", None) or AsyncMock()
    return AnalysisAdapter(provider, sleep=sleep, **kwargs), sleep


@pytest.mark.asyncio
class TestSuccess:
    async def test_first_attempt_success(self):
        provider = ScriptedProvider(default='{"dish_name": "Pasta"}')
        adapter, sleep = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == '{"dish_name": "Pasta"}'
        assert provider.calls == ["A"]
        sleep.assert_not_called()

    async def test_two_calls_are_independent(self):
        provider = ScriptedProvider(default="result")
        adapter, _ = make_adapter(provider)
        first = await adapter.analyze(REQUEST)
        second = await adapter.analyze(REQUEST)
        assert first == second == "result"
        # each call starts from the primary model at attempt 0
        assert provider.calls == ["A", "A"]

    async def test_chain_rebuilt_after_failover(self):
        provider = ScriptedProvider(script={"A": [RuntimeError("404 not found"), "from A"]})
        adapter, _ = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == "ok"        # served by B
        assert await adapter.analyze(REQUEST) == "from A"    # starts over at A
        assert provider.calls == ["A", "B", "A"]


@pytest.mark.asyncio
class TestRateLimit:
    async def test_hint_used_for_wait(self):
        provider = ScriptedProvider(script={"A": [RuntimeError("429 please retry in 2.5s"), "done"]})
        adapter, sleep = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == "done"
        sleep.assert_awaited_once_with(2.5)
        assert provider.calls == ["A", "A"]

    async def test_exponential_backoff_without_hint(self):
        err = RuntimeError("quota exceeded")
        provider = ScriptedProvider(script={"A": [err, err, err, "done"]})
        adapter, sleep = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == "done"
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0]

    async def test_exhausted_rate_limit_moves_to_next_model(self):
        provider = ScriptedProvider(script={"A": [RuntimeError("rate limit")], "B": ["from B"]})
        adapter, sleep = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == "from B"
        assert provider.calls == ["A"] * 4 + ["B"]
        assert sleep.await_count == 3


@pytest.mark.asyncio
class TestModelUnavailable:
    async def test_single_call_then_fallback(self):
        provider = ScriptedProvider(script={"A": [RuntimeError("404 model not found")], "B": ["from B"]})
        adapter, sleep = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == "from B"
        assert provider.calls == ["A", "B"]
        sleep.assert_not_called()

    async def test_all_models_unavailable(self):
        provider = ScriptedProvider(default=RuntimeError("models/x is not found for API version v1beta"))
        adapter, _ = make_adapter(provider)
        with pytest.raises(AnalysisServiceError, match="No available models found. Tried: A, B") as exc_info:
            await adapter.analyze(REQUEST)
        assert "Fake AI" in str(exc_info.value)
        assert provider.calls == ["A", "B"]


@pytest.mark.asyncio
class TestTransient:
    async def test_single_model_four_calls_then_fail(self):
        boom = ConnectionError("connection reset")
        provider = ScriptedProvider(default=boom, fallbacks=())
        adapter, sleep = make_adapter(provider, policy=RetryPolicy(max_retries=3))
        with pytest.raises(AnalysisServiceError, match="after retries. Tried: A.") as exc_info:
            await adapter.analyze(REQUEST)
        assert provider.calls == ["A"] * 4
        assert exc_info.value.__cause__ is boom
        # transient retries are immediate
        sleep.assert_not_called()

    async def test_transient_then_success(self):
        provider = ScriptedProvider(script={"A": [ValueError("flaky"), "ok now"]})
        adapter, _ = make_adapter(provider)
        assert await adapter.analyze(REQUEST) == "ok now"

    async def test_attempt_ordering_across_models(self):
        provider = ScriptedProvider(default=RuntimeError("500 internal"), fallbacks=("B", "C"))
        adapter, _ = make_adapter(provider, policy=RetryPolicy(max_retries=1))
        with pytest.raises(AnalysisServiceError) as exc_info:
            await adapter.analyze(REQUEST)
        assert provider.calls == ["A", "A", "B", "B", "C", "C"]
        trail = [(r.model_id, r.attempt_index) for r in exc_info.value.attempts]
        assert trail == [("A", 0), ("A", 1), ("B", 0), ("B", 1), ("C", 0), ("C", 1)]

    async def test_attempt_records(self):
        provider = ScriptedProvider(script={"A": [RuntimeError("429 retry in 1s"), RuntimeError("404")], "B": [RuntimeError("boom")]},
                                    fallbacks=("B",))
        adapter, _ = make_adapter(provider, policy=RetryPolicy(max_retries=0))
        with pytest.raises(AnalysisServiceError) as exc_info:
            await adapter.analyze(REQUEST)
        assert exc_info.value.attempts == (
            ModelAttemptRecord("A", 0, AttemptOutcome.FATAL_FAILURE),
            ModelAttemptRecord("B", 0, AttemptOutcome.FATAL_FAILURE),
        )

    async def test_retryable_record_has_wait(self):
        provider = ScriptedProvider(default=RuntimeError("429 retry in 1s"), fallbacks=())
        adapter, _ = make_adapter(provider, policy=RetryPolicy(max_retries=1))
        with pytest.raises(AnalysisServiceError) as exc_info:
            await adapter.analyze(REQUEST)
        first = exc_info.value.attempts[0]
        assert first.outcome is AttemptOutcome.RETRYABLE_FAILURE
        assert first.wait_ms == 1000


@pytest.mark.asyncio
class TestConfiguration:
    async def test_explicit_models_override_provider_defaults(self):
        provider = ScriptedProvider(default=RuntimeError("404"))
        adapter, _ = make_adapter(provider, primary_model="X", fallback_models=["Y", "X"])
        with pytest.raises(AnalysisServiceError, match="Tried: X, Y"):
            await adapter.analyze(REQUEST)

    async def test_empty_fallbacks(self):
        provider = ScriptedProvider(default=RuntimeError("404"))
        adapter, _ = make_adapter(provider, fallback_models=[])
        with pytest.raises(AnalysisServiceError, match="Tried: A\\."):
            await adapter.analyze(REQUEST)
        assert provider.calls == ["A"]

    async def test_provider_identity(self):
        adapter, _ = make_adapter(ScriptedProvider())
        assert adapter.provider_name == "fake"
        assert adapter.display_name == "Fake AI"


@pytest.mark.asyncio
class TestTimeoutAndCancellation:
    async def test_timeout_raises_service_error(self):
        class SlowProvider(ScriptedProvider):
            async def generate(self, model_id, request):
                await asyncio.sleep(10)
                return "too late"

        adapter = AnalysisAdapter(SlowProvider())
        with pytest.raises(AnalysisServiceError, match="timed out"):
            await adapter.analyze(REQUEST, timeout=0.01)

    async def test_cancellation_propagates_during_backoff(self):
        provider = ScriptedProvider(default=RuntimeError("429 retry in 60s"))
        adapter = AnalysisAdapter(provider)   # real asyncio.sleep
        task = asyncio.create_task(adapter.analyze(REQUEST))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert provider.calls == ["A"]
