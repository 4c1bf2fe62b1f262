"""Utility functions for Agent Activity Report."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    operation_name: str = "operation",
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    **log_context: Any,
) -> T:
    """Await ``operation`` until it succeeds, with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        max_attempts: Total number of attempts (at least one is made).
        delay: Initial delay between attempts in seconds.
        backoff: Multiplier for delay after each failed attempt.
        operation_name: Name used in log events.
        retry_on: Exception types that trigger another attempt.
        **log_context: Extra key/values attached to the retry log events.

    Returns:
        The result of the first successful attempt.

    Raises:
        The exception of the final attempt once all attempts are exhausted.
    """
    attempts = max(1, max_attempts)
    current_delay = delay

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt >= attempts:
                logger.warning(
                    "operation_retry_exhausted",
                    operation=operation_name,
                    attempts=attempts,
                    error=str(e),
                    **log_context,
                )
                raise
            logger.debug(
                "operation_retry",
                operation=operation_name,
                attempt=attempt,
                max_attempts=attempts,
                delay=current_delay,
                error=str(e),
                **log_context,
            )
            if current_delay > 0:
                await asyncio.sleep(current_delay)
            current_delay *= backoff

    raise AssertionError("unreachable")
