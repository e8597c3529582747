"""
Tests for ResiliencePolicy: retry schedule plus per-attempt timeout.

asyncio.sleep is patched so backoff delays are recorded, not waited for.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from vi_access.config.settings import ResilienceSettings
from vi_access.errors.exceptions import (
    AccountNotFound,
    PermanentError,
    Timeout,
    TokenExchangeFailure,
    TransientError,
)
from vi_access.http.policy import DEFAULT_POLICY, NO_RETRY, ResiliencePolicy


def _sleep_delays(mock_sleep) -> list[float]:
    return [c.args[0] for c in mock_sleep.await_args_list]


class TestResiliencePolicyConfig:
    """Tests for policy construction."""

    def test_defaults(self):
        assert DEFAULT_POLICY.max_retry_attempts == 4
        assert DEFAULT_POLICY.max_attempts == 5
        assert DEFAULT_POLICY.base_delay == 2.0
        assert DEFAULT_POLICY.timeout_seconds == 5.0
        assert DEFAULT_POLICY.jitter is False

    def test_no_retry_is_single_attempt(self):
        assert NO_RETRY.max_attempts == 1
        assert NO_RETRY.timeout_seconds == DEFAULT_POLICY.timeout_seconds

    def test_from_settings(self):
        settings = ResilienceSettings(
            max_retry_attempts=2,
            base_delay_seconds=0.5,
            max_delay_seconds=4.0,
            timeout_seconds=1.0,
            jitter=True,
        )
        policy = ResiliencePolicy.from_settings(settings)

        assert policy.max_attempts == 3
        assert policy.base_delay == 0.5
        assert policy.max_delay == 4.0
        assert policy.timeout_seconds == 1.0
        assert policy.jitter is True

    def test_retry_config_delays(self):
        config = DEFAULT_POLICY.retry_config()

        assert config.max_attempts == 5
        assert [config.get_delay(a) for a in range(4)] == [2.0, 4.0, 8.0, 16.0]

    def test_max_duration_covers_timeouts_and_capped_backoffs(self):
        # 5 attempts of 5s plus 4 backoffs of at most 30s
        assert DEFAULT_POLICY.max_duration == 145.0
        assert NO_RETRY.max_duration == 5.0


class TestResiliencePolicyExecute:
    """Tests for ResiliencePolicy.execute."""

    @pytest.mark.asyncio
    async def test_returns_result_of_first_success(self):
        operation = AsyncMock(return_value="ok")

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await DEFAULT_POLICY.execute(operation, name="op") == "ok"

        operation.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_four_times_with_exponential_backoff(self):
        operation = AsyncMock(side_effect=TokenExchangeFailure("403", status_code=403))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TokenExchangeFailure):
                await DEFAULT_POLICY.execute(operation, name="generateAccessToken")

        assert operation.await_count == 5
        assert _sleep_delays(mock_sleep) == [2.0, 4.0, 8.0, 16.0]

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self):
        operation = AsyncMock(side_effect=[TransientError("reset"), "ok"])

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await DEFAULT_POLICY.execute(operation) == "ok"

        assert _sleep_delays(mock_sleep) == [2.0]

    @pytest.mark.asyncio
    async def test_permanent_failures_surface_immediately(self):
        for error in (PermanentError("gone"), AccountNotFound("acct")):
            operation = AsyncMock(side_effect=error)

            with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
                with pytest.raises(type(error)):
                    await DEFAULT_POLICY.execute(operation)

            operation.assert_awaited_once()
            mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_on_every_attempt_raises_timeout(self):
        never = asyncio.Event()
        calls = 0

        async def hang():
            nonlocal calls
            calls += 1
            await never.wait()

        policy = ResiliencePolicy(timeout_seconds=0.01)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(Timeout) as exc_info:
                await policy.execute(hang, name="getAccount")

        assert calls == 5
        assert _sleep_delays(mock_sleep) == [2.0, 4.0, 8.0, 16.0]
        assert exc_info.value.timeout_seconds == 0.01
        assert exc_info.value.context["operation"] == "getAccount"

    @pytest.mark.asyncio
    async def test_slow_attempt_is_retried_then_succeeds(self):
        never = asyncio.Event()
        attempts = []

        async def slow_then_fast():
            attempts.append(len(attempts))
            if len(attempts) == 1:
                await never.wait()
            return "ok"

        policy = ResiliencePolicy(timeout_seconds=0.01)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            assert await policy.execute(slow_then_fast) == "ok"

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_no_retry_policy_makes_one_attempt(self):
        operation = AsyncMock(side_effect=TransientError("reset"))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TransientError):
                await NO_RETRY.execute(operation)

        operation.assert_awaited_once()
        mock_sleep.assert_not_awaited()
