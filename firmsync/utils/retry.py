"""
Retry with exponential backoff for async operations
Used around network-facing calls such as the LLM endpoint
"""
import asyncio
import random
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

import requests

from ..monitoring import get_logger

logger = get_logger('retry')

T = TypeVar('T')

RETRYABLE_ERROR_CODES = {'ECONNRESET', 'ETIMEDOUT'}


def _status_of(error: BaseException) -> Optional[int]:
    """HTTP status carried by an error, if any"""
    status = getattr(error, 'status', None) or getattr(error, 'status_code', None)
    if status is None:
        response = getattr(error, 'response', None)
        status = getattr(response, 'status_code', None)
    return status if isinstance(status, int) else None


def default_should_retry(error: BaseException) -> bool:
    """Connection resets, timeouts, HTTP 429 and 5xx are retryable"""
    if isinstance(error, (ConnectionResetError, TimeoutError, asyncio.TimeoutError,
                          requests.ConnectionError, requests.Timeout)):
        return True
    if getattr(error, 'code', None) in RETRYABLE_ERROR_CODES:
        return True

    status = _status_of(error)
    if status is None:
        return False
    return status == 429 or 500 <= status < 600


@dataclass
class RetryOptions:
    """Backoff settings; delays are in milliseconds"""
    max_attempts: int = 3
    initial_delay: float = 1000
    max_delay: float = 10000
    factor: float = 2
    should_retry: Callable[[BaseException], bool] = field(default=default_should_retry)


async def retry(operation: Callable[[], Awaitable[T]],
                options: Optional[RetryOptions] = None) -> T:
    """
    Call ``operation`` until it succeeds or retrying is pointless

    Args:
        operation: Zero-argument callable returning an awaitable
        options: Backoff settings, defaults to RetryOptions()

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted or should_retry declines
    """
    opts = options or RetryOptions()
    attempt = 1
    delay = opts.initial_delay

    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= opts.max_attempts or not opts.should_retry(e):
                raise

            logger.warning("Operation failed, retrying",
                           attempt=attempt,
                           max_attempts=opts.max_attempts,
                           delay_ms=delay,
                           error=str(e))
            await asyncio.sleep(min(delay, opts.max_delay) / 1000.0)

            jitter = 0.9 + random.random() * 0.2
            delay = min(delay * opts.factor * jitter, opts.max_delay)
            attempt += 1


def with_retry(**option_kwargs: Any):
    """Decorator form of :func:`retry` for coroutine functions"""
    options = RetryOptions(**option_kwargs)

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await retry(lambda: func(*args, **kwargs), options)
        return wrapper

    return decorator
