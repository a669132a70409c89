"""
Tests for RetryExecutor
"""

from unittest.mock import AsyncMock

import pytest

from studycast.core.exceptions import GenerationError, RetryExhaustedError
from studycast.services.pipeline.retry import RetryExecutor, RetryPolicy, SoftFailure


@pytest.fixture
def sleep():
    return AsyncMock()


class TestRetryPolicy:

    def test_linear_backoff(self):
        policy = RetryPolicy(max_attempts=4, base_delay=0.5)
        assert [policy.delay_after(n) for n in (1, 2, 3, 4)] == [0.5, 1.0, 1.5, None]

    @pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"base_delay": -1}])
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestRetryExecutor:

    @pytest.mark.asyncio
    async def test_first_success_does_not_sleep(self, sleep):
        executor = RetryExecutor(RetryPolicy(3, 1.0), sleep=sleep)

        outcome = await executor.run(AsyncMock(return_value="ok"))

        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert outcome.errors == []
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_result_counts_as_failure(self, sleep):
        operation = AsyncMock(side_effect=["", "", "audio"])
        executor = RetryExecutor(RetryPolicy(3, 1.0), sleep=sleep)

        outcome = await executor.run(operation, accept=bool)

        assert outcome.value == "audio"
        assert outcome.attempts == 3
        assert all(isinstance(e, SoftFailure) for e in outcome.errors)
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
    async def test_never_more_than_max_attempts(self, sleep, max_attempts):
        operation = AsyncMock(side_effect=GenerationError("no audio"))
        executor = RetryExecutor(RetryPolicy(max_attempts, 0.1), sleep=sleep)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.run(operation, description="speech synthesis")

        assert operation.await_count == max_attempts
        assert sleep.await_count == max_attempts - 1
        assert executor.attempts == max_attempts
        error = exc_info.value
        assert error.attempts == max_attempts
        assert f"after {max_attempts} attempts" in error.message
        assert "no audio" in error.message
        assert isinstance(error.__cause__, GenerationError)

    @pytest.mark.asyncio
    async def test_last_error_is_reported(self, sleep):
        operation = AsyncMock(side_effect=[ValueError("first"), KeyError("second")])
        executor = RetryExecutor(RetryPolicy(2, 0), sleep=sleep)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.run(operation)

        assert isinstance(exc_info.value.last_error, KeyError)
