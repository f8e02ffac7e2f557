"""
Unit tests for Retry utilities.

Tests async retry logic with exponential backoff.
"""

import pytest
from revvdoc.errors import UpstreamFailure
from revvdoc.utils import retry as retry_module
from revvdoc.utils.retry import RetryExhaustedError, with_retry


class Flaky:
    """Fails ``failures`` times, then returns "success"."""

    def __init__(self, failures: int, exc: Exception = None):
        self.failures = failures
        self.exc = exc or ConnectionError("temporarily unavailable")
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "success"


@pytest.mark.asyncio
async def test_with_retry_succeeds_immediately():
    func = Flaky(0)

    assert await with_retry(func, max_retries=3, initial_delay=0) == "success"
    assert func.calls == 1


@pytest.mark.asyncio
async def test_with_retry_succeeds_after_failures():
    func = Flaky(2)

    assert await with_retry(func, max_retries=3, initial_delay=0) == "success"
    assert func.calls == 3


@pytest.mark.asyncio
async def test_with_retry_exhausts_retries():
    func = Flaky(5)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await with_retry(func, max_retries=3, initial_delay=0, operation_name="Lookup")

    assert exc_info.value.attempts == 3
    assert "Lookup failed after 3 attempts" in str(exc_info.value)
    assert isinstance(exc_info.value, UpstreamFailure)
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert func.calls == 3


@pytest.mark.asyncio
async def test_non_retryable_errors_propagate():
    func = Flaky(1, exc=KeyError("bad payload"))

    with pytest.raises(KeyError):
        await with_retry(func, max_retries=3, initial_delay=0, retry_on=(ConnectionError,))

    assert func.calls == 1


@pytest.mark.asyncio
async def test_backoff_delays(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)

    with pytest.raises(RetryExhaustedError):
        await with_retry(Flaky(10), max_retries=4, initial_delay=1.0, backoff_factor=2.0, max_delay=3.0)

    assert delays == [1.0, 2.0, 3.0]
