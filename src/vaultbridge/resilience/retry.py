"""
Retry policy for vault transport failures, using Tenacity.

Only the detokenize call is retried. PSP calls are never retried so a
charge cannot be submitted twice.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from vaultbridge.core.logging import get_logger

logger = get_logger("retry")


def is_transient_error(exception: BaseException) -> bool:
    """Connect failures, timeouts and dropped connections; never HTTP status errors."""
    return isinstance(exception, httpx.TransportError)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Retrying vault call after transport error (attempt {retry_state.attempt_number}): {exc!r}"
    )


def vault_retrying(max_attempts: int = 3, max_wait: float = 2.0) -> AsyncRetrying:
    """Build the retry controller used around the detokenize request."""
    return AsyncRetrying(
        retry=retry_if_exception(is_transient_error),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=max_wait),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
        before_sleep=_log_retry,
    )


async def execute_with_retry(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    max_attempts: int = 3,
    **kwargs: Any,
) -> Any:
    """Execute an async function with the vault retry policy."""
    async for attempt in vault_retrying(max_attempts):
        with attempt:
            return await func(*args, **kwargs)
