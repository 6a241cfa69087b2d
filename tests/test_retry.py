"""Tests for per-stage timeouts and exponential-backoff retry."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from assistant.core.errors import (
    MalformedOutputError,
    ProviderDisabledError,
    ProviderTransportError,
    StageTimeoutError,
)
from assistant.utils.retry import call_stage, is_retryable, with_retry, with_timeout
from tests.conftest import make_settings


class TestIsRetryable:
    def test_retryable_transport_error(self):
        assert is_retryable(ProviderTransportError("openai", "429", retryable=True)) is True

    def test_non_retryable_transport_error(self):
        assert is_retryable(ProviderTransportError("openai", "401", retryable=False)) is False

    def test_timeouts_are_retryable(self):
        assert is_retryable(StageTimeoutError("rerank", 1.0)) is True

    @pytest.mark.parametrize("exc", [
        MalformedOutputError("rerank", "bad json"),
        ProviderDisabledError("openai"),
        ValueError("boom"),
    ])
    def test_other_errors_are_not_retryable(self, exc):
        assert is_retryable(exc) is False


class TestWithRetry:
    @patch("assistant.utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_success_first_attempt(self, mock_sleep):
        factory = AsyncMock(return_value="ok")

        assert await with_retry(factory) == "ok"
        factory.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    @patch("assistant.utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_succeeds_after_transient_error(self, mock_sleep):
        factory = AsyncMock(side_effect=[
            ProviderTransportError("openai", "rate limited", retryable=True),
            "recovered",
        ])

        assert await with_retry(factory) == "recovered"
        assert factory.await_count == 2
        mock_sleep.assert_awaited_once()

    @patch("assistant.utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_exhausts_attempts(self, mock_sleep):
        factory = AsyncMock(side_effect=StageTimeoutError("rerank", 1.0))

        with pytest.raises(StageTimeoutError):
            await with_retry(factory, attempts=3)

        assert factory.await_count == 3
        assert mock_sleep.await_count == 2

    @patch("assistant.utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_non_retryable_raises_immediately(self, mock_sleep):
        factory = AsyncMock(side_effect=MalformedOutputError("rerank", "bad"))

        with pytest.raises(MalformedOutputError):
            await with_retry(factory)

        factory.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    @patch("assistant.utils.retry.random.random", return_value=0.0)
    @patch("assistant.utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_backoff_delays_increase_and_cap(self, mock_sleep, _mock_random):
        factory = AsyncMock(side_effect=[
            ProviderTransportError("google", "503", retryable=True),
            ProviderTransportError("google", "503", retryable=True),
            ProviderTransportError("google", "503", retryable=True),
            "ok",
        ])

        result = await with_retry(factory, attempts=4, base_delay=0.5, max_delay=1.5)

        assert result == "ok"
        delays = [call.args[0] for call in mock_sleep.await_args_list]
        assert delays == [0.5, 1.0, 1.5]

    @patch("assistant.utils.retry.random.random", return_value=1.0)
    @patch("assistant.utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_jitter_scales_with_base_delay(self, mock_sleep, _mock_random):
        factory = AsyncMock(side_effect=[
            ProviderTransportError("openai", "429", retryable=True),
            "ok",
        ])

        await with_retry(factory, base_delay=0.001)

        assert mock_sleep.await_args.args[0] == pytest.approx(0.002)


class TestWithTimeout:
    async def test_returns_result_in_time(self):
        async def quick():
            return 42

        assert await with_timeout("quick", quick(), 1.0) == 42

    async def test_raises_stage_timeout(self):
        async def slow():
            await asyncio.sleep(10)

        with pytest.raises(StageTimeoutError) as excinfo:
            await with_timeout("slow_stage", slow(), 0.01)
        assert excinfo.value.stage == "slow_stage"
        assert isinstance(excinfo.value, TimeoutError)


class TestCallStage:
    async def test_retries_timeouts_with_fresh_awaitables(self):
        settings = make_settings(stage_timeout_seconds=0.01, retry_max_attempts=2)
        attempts = []

        async def stage():
            attempts.append(1)
            if len(attempts) == 1:
                await asyncio.sleep(10)
            return "done"

        assert await call_stage("stage", stage, settings) == "done"
        assert len(attempts) == 2

    async def test_surfaces_timeout_after_exhaustion(self):
        settings = make_settings(stage_timeout_seconds=0.01, retry_max_attempts=2)

        async def stage():
            await asyncio.sleep(10)

        with pytest.raises(StageTimeoutError):
            await call_stage("stage", stage, settings)
