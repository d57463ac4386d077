"""
Retry helpers for calls that race the backend's asynchronous side effects.

The signup trigger that creates a profile row can lag the auth write, so a
lookup right after signup may miss. These helpers retry a bounded number of
times with a fixed or exponential delay.
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from .config import config

logger = logging.getLogger("Nawartu")

T = TypeVar("T")


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    max_retries: int | None = None,
    delay: float | None = None,
    backoff: float = 1.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Call ``func`` and retry it when it raises one of ``exceptions``.

    Args:
        func: Callable to invoke
        max_retries: Retries after the first attempt (None = config value)
        delay: Initial delay between attempts in seconds (None = config value)
        backoff: Multiplier applied to the delay after each retry (1.0 = fixed)
        exceptions: Exception types that trigger a retry
        sleep: Sleep function, replaceable in tests

    Returns:
        The return value of the first successful attempt

    Raises:
        The last exception once all attempts are exhausted
    """
    retries = config.retry_attempts if max_retries is None else max_retries
    current_delay = config.retry_delay if delay is None else delay
    name = getattr(func, "__name__", "call")

    attempt = 0
    while True:
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            if attempt >= retries:
                logger.error(f"All {retries + 1} attempts failed for {name}")
                raise
            attempt += 1
            logger.warning(
                f"Attempt {attempt}/{retries + 1} failed for {name}: {e}. "
                f"Retrying in {current_delay:.1f}s..."
            )
            sleep(current_delay)
            current_delay *= backoff


def retry_on_failure(
    max_retries: int | None = None,
    delay: float | None = None,
    backoff: float = 1.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator form of :func:`call_with_retry`.

    Args:
        max_retries: Retries after the first attempt (None = config value)
        delay: Initial delay between attempts (None = config value)
        backoff: Multiplier for delay after each retry
        exceptions: Tuple of exceptions to catch and retry

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return call_with_retry(
                func,
                *args,
                max_retries=max_retries,
                delay=delay,
                backoff=backoff,
                exceptions=exceptions,
                **kwargs,
            )
        return wrapper
    return decorator
