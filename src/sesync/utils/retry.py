"""Retry decorator with exponential backoff for provider transport calls."""

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import structlog

from sesync.utils.exceptions import ProviderError

P = ParamSpec("P")
T = TypeVar("T")

logger = structlog.get_logger(__name__)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 2.0,
    max_delay: float = 60.0,
) -> Callable[[Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]]:
    """Decorator that retries an async provider call with exponential backoff.

    Only retryable ``ProviderError`` instances are retried. Client errors (4xx)
    and errors flagged ``retryable = False`` (malformed response, missing
    resource) are raised immediately.

    When decorating a method, the instance may override the defaults through
    ``_max_retries`` and ``_retry_delay`` attributes.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Base delay in seconds (doubles each retry).
        max_delay: Maximum delay between retries.

    Returns:
        Decorated function.
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]]
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            owner = args[0] if args else None
            retries = getattr(owner, "_max_retries", max_retries)
            delay_base = getattr(owner, "_retry_delay", base_delay)

            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except ProviderError as e:
                    if not e.retryable:
                        raise
                    if e.status_code and 400 <= e.status_code < 500:
                        raise

                    if attempt == retries:
                        logger.error(
                            "Max retries exceeded",
                            function=func.__name__,
                            attempts=attempt + 1,
                            error=str(e),
                        )
                        raise

                    delay = min(delay_base * (2**attempt), max_delay)
                    logger.warning(
                        "Retrying after error",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=retries,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError("Unexpected state in retry decorator")

        return wrapper

    return decorator
