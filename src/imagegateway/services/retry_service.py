"""Retry service with exponential backoff for upstream calls."""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from imagegateway.models.errors import ErrorCode, ImageGatewayError, is_retryable

T = TypeVar("T")


class RetryableError(ImageGatewayError):
    """Upstream call failure tagged with an error code; retried only for retryable codes."""

    def __init__(self, error_code: ErrorCode, message: str, original_exception: Exception | None = None):
        super().__init__(message, error_code=error_code)
        self.original_exception = original_exception


def _is_retryable_failure(exc: BaseException) -> bool:
    return isinstance(exc, RetryableError) and is_retryable(exc.error_code)


# Standard retry configuration: 3 attempts, waiting 1s then 2s between them
DEFAULT_RETRY_CONFIG = {
    "stop": stop_after_attempt(3),
    "wait": wait_exponential(multiplier=1, min=1, max=4),
    "retry": retry_if_exception(_is_retryable_failure),
    "reraise": True,
}


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    retry_config: dict[str, Any] | None = None,
    timeout_seconds: float | None = None,
    **kwargs: Any,
) -> T:
    """
    Execute an async function with retry logic and exponential backoff.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        retry_config: Optional custom retry configuration. If None, uses default.
        timeout_seconds: Optional timeout per attempt. If None, no timeout is applied.
        **kwargs: Keyword arguments for func

    Returns:
        Result from func

    Raises:
        RetryableError: If all retries are exhausted, timeout occurs, or the code is not retryable
        Exception: Other exceptions are re-raised immediately
    """
    config = dict(retry_config or DEFAULT_RETRY_CONFIG)
    config.setdefault("retry", retry_if_exception(_is_retryable_failure))
    config.setdefault("reraise", True)

    async def _execute_with_timeout():
        """Execute func with optional timeout."""
        if timeout_seconds is not None:
            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)
            except asyncio.TimeoutError as e:
                raise RetryableError(
                    ErrorCode.PROVIDER_TIMEOUT,
                    f"Request timed out after {timeout_seconds}s",
                    original_exception=e,
                )
        return await func(*args, **kwargs)

    async for attempt in AsyncRetrying(**config):
        with attempt:
            return await _execute_with_timeout()
