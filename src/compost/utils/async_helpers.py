"""Async helpers for platform transport.

This module provides:
- The retry policy applied to individual platform HTTP requests
- A timeout wrapper that cancels a whole reconciliation chain

Retries live at the transport layer only. The reconciliation engine never
retries a failed step.
"""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable
from typing import TypeVar

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from compost.utils.errors import OperationTimeoutError

log = structlog.get_logger()

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "retrying_request",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=retry_state.next_action.sleep if retry_state.next_action else 0,
        )


# Applied to single HTTP requests, never to a whole reconciliation
api_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
    before_sleep=_log_retry,
    reraise=True,
)


async def with_timeout(
    coro: Awaitable[T],
    timeout: float | None,
    error_message: str | None = None,
) -> T:
    """Execute an awaitable with an optional deadline.

    Cancellation propagates into every pending platform call, so the chain
    stops at its next await point.

    Args:
        coro: The coroutine to execute.
        timeout: Timeout in seconds, or None for no deadline.
        error_message: Custom error message for timeout.

    Returns:
        The result of the coroutine.

    Raises:
        OperationTimeoutError: If the operation times out.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except builtins.TimeoutError as e:
        msg = error_message or f"Operation timed out after {timeout}s"
        log.warning("operation_timeout", timeout=timeout)
        raise OperationTimeoutError(msg) from e
