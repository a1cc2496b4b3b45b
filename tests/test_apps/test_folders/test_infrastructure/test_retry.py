"""Tests for bounded retry."""

import pytest

from server.apps.folders.infrastructure import retry
from server.apps.folders.infrastructure.retry import call_with_retry


class _Flaky:
    """Callable failing a fixed number of times before succeeding."""

    def __init__(self, failures: int, error: Exception) -> None:
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return 'ok'


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Skip backoff waits."""
    monkeypatch.setattr(retry.time, 'sleep', lambda _: None)


def test_returns_first_success():
    """Test no retry happens when the first call succeeds."""
    func = _Flaky(failures=0, error=ConnectionError())

    result = call_with_retry(
        func,
        retries=3,
        initial_delay=1,
        retry_on=(ConnectionError,),
    )

    assert result == 'ok'
    assert func.calls == 1


def test_retries_listed_errors():
    """Test transient errors are retried until success."""
    func = _Flaky(failures=2, error=ConnectionError('reset'))

    result = call_with_retry(
        func,
        retries=2,
        initial_delay=1,
        retry_on=(ConnectionError,),
    )

    assert result == 'ok'
    assert func.calls == 3


def test_gives_up_after_retries():
    """Test the last error propagates once attempts run out."""
    func = _Flaky(failures=5, error=ConnectionError('reset'))

    with pytest.raises(ConnectionError):
        call_with_retry(
            func,
            retries=2,
            initial_delay=1,
            retry_on=(ConnectionError,),
        )

    assert func.calls == 3


def test_does_not_retry_other_errors():
    """Test errors outside retry_on propagate immediately."""
    func = _Flaky(failures=5, error=PermissionError('denied'))

    with pytest.raises(PermissionError):
        call_with_retry(
            func,
            retries=2,
            initial_delay=1,
            retry_on=(ConnectionError,),
        )

    assert func.calls == 1
