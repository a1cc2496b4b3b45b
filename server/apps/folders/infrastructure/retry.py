"""Bounded retry for idempotent remote calls."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

_ResultT = TypeVar('_ResultT')


def call_with_retry(  # noqa: WPS211
    func: Callable[[], _ResultT],
    *,
    retries: int,
    initial_delay: float,
    retry_on: tuple[type[Exception], ...],
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
) -> _ResultT:
    """Call ``func`` and retry it on transient failures.

    Only exceptions listed in ``retry_on`` are retried; anything else
    propagates immediately. Callers must only pass idempotent functions.

    Args:
        func: Zero-argument callable to invoke.
        retries: Extra attempts after the first one.
        initial_delay: Seconds to wait before the first retry.
        retry_on: Exception types worth retrying.
        max_delay: Upper bound for a single wait.
        exponential_base: Backoff multiplier.

    Returns:
        Whatever ``func`` returns.

    Raises:
        Exception: The last error once attempts are exhausted.
    """
    attempts = retries + 1
    delay = initial_delay

    for attempt in range(1, attempts + 1):
        try:
            result = func()
        except retry_on as error:
            if attempt == attempts:
                logger.error(
                    'All %d attempts failed, giving up: %s',
                    attempts,
                    error,
                )
                raise
            logger.warning(
                'Attempt %d/%d failed: %s; retrying in %.1fs',
                attempt,
                attempts,
                error,
                delay,
            )
            time.sleep(delay)
            delay = min(delay * exponential_base, max_delay)
        else:
            if attempt > 1:
                logger.info('Succeeded on attempt %d/%d', attempt, attempts)
            return result

    raise RuntimeError('Retry loop exited without a result')
