"""
Retry for persistence steps.

A storage write that fails with PersistenceError is tried again once
(``fulfillment.persistence_retry_attempts`` counts the first attempt).
Domain errors such as StateConflictError are never retried here.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.config import get_logger, get_settings
from src.core.exceptions import PersistenceError

logger = get_logger(__name__)

T = TypeVar("T")


def _retry_logger(operation_name: str) -> Callable[[RetryCallState], None]:
    def log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "persistence_retry",
            operation=operation_name,
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    return log_retry


async def with_persistence_retry(
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run ``operation``, retrying on PersistenceError; the last error is re-raised."""
    operation_name = getattr(operation, "__name__", repr(operation))
    attempts = max(1, get_settings().fulfillment.persistence_retry_attempts)

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(0.05),
        retry=retry_if_exception_type(PersistenceError),
        before_sleep=_retry_logger(operation_name),
        reraise=True,
    ):
        with attempt:
            result = await operation(*args, **kwargs)
    return result
