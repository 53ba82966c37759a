"""Tests for retry utilities."""

import asyncio

import pytest

from decksmith.utils.retry import format_exception, with_retry
from fakes import no_sleep


class TestRetry:
    """Tests for retry logic."""

    @pytest.mark.asyncio
    async def test_success_on_first_try(self) -> None:
        """Test that successful calls don't retry."""
        call_count = 0

        async def success() -> str:
            nonlocal call_count
            call_count += 1
            return "success"

        result = await with_retry(success, operation_name="test", sleep=no_sleep)

        assert result == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retry_until_success(self) -> None:
        """Test that a transient failure is retried."""
        call_count = 0

        async def fail_then_succeed() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ConnectionError("Network failed")
            return "success"

        result = await with_retry(fail_then_succeed, max_attempts=3, sleep=no_sleep)

        assert result == "success"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_max_attempts_exhausted(self) -> None:
        """Test that the last exception is raised after max attempts."""
        call_count = 0

        async def always_fail() -> str:
            nonlocal call_count
            call_count += 1
            raise ConnectionError("Always fails")

        with pytest.raises(ConnectionError):
            await with_retry(always_fail, max_attempts=4, sleep=no_sleep)

        assert call_count == 4

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self) -> None:
        """Test that is_retryable=False stops after one attempt."""
        call_count = 0

        async def bad_input() -> str:
            nonlocal call_count
            call_count += 1
            raise ValueError("Invalid JSON")

        with pytest.raises(ValueError):
            await with_retry(
                bad_input,
                max_attempts=5,
                is_retryable=lambda e: not isinstance(e, ValueError),
                sleep=no_sleep,
            )

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_exponential_backoff(self) -> None:
        """Test that waits start at base_delay and double."""
        waits = []

        async def record(seconds: float) -> None:
            waits.append(seconds)

        async def always_fail() -> str:
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            await with_retry(always_fail, max_attempts=4, base_delay=2.0, sleep=record)

        assert waits == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self) -> None:
        """Test that CancelledError propagates without retrying."""
        call_count = 0

        async def cancelled() -> str:
            nonlocal call_count
            call_count += 1
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await with_retry(cancelled, max_attempts=3, sleep=no_sleep)

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_passes_arguments(self) -> None:
        """Test that positional and keyword arguments reach the function."""

        async def add(a: int, b: int = 0) -> int:
            return a + b

        assert await with_retry(add, 2, b=3, sleep=no_sleep) == 5


def test_format_exception_includes_cause():
    """Test cause chaining in log messages."""
    try:
        try:
            raise OSError("socket closed")
        except OSError as e:
            raise RuntimeError("request failed") from e
    except RuntimeError as e:
        assert format_exception(e) == "request failed (caused by: socket closed)"
