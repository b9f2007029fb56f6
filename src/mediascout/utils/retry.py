"""Retry policy with exponential backoff and jitter.

Shared by components that talk to flaky I/O (template store, persistence).
The policy re-raises the last error once attempts are exhausted so callers
keep control over how a failure is classified.
"""

import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from mediascout.core.logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")


class RetryPolicy(BaseModel):
    """Exponential backoff policy for transient failures."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    base_delay: float = Field(default=0.5, ge=0.0, description="Base delay in seconds")
    max_delay: float = Field(default=10.0, ge=0.0, description="Maximum delay in seconds")
    jitter: float = Field(default=0.1, ge=0.0, le=1.0, description="Jitter factor (±10%)")
    retry_on: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError, OSError)

    def compute_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-indexed)."""
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        jitter = delay * self.jitter * (random.random() * 2 - 1)
        return max(0.0, delay + jitter)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.compute_delay(retry_state.attempt_number - 1)

    def retrying(self, name: str = "operation") -> AsyncRetrying:
        """Build the tenacity controller for one operation."""

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                "Retrying after transient failure",
                operation=name,
                attempt=retry_state.attempt_number,
                delay_seconds=round(delay, 3),
                error=str(error),
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self._wait,
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=log_retry,
            reraise=True,
        )

    async def run(self, operation: Callable[[], Awaitable[R]], *, name: str = "operation") -> R:
        """Run an async operation, retrying transient failures.

        Args:
            operation: Zero-argument callable returning an awaitable.
            name: Operation name for logging.

        Returns:
            The operation result.

        Raises:
            The last exception raised by the operation once retries are
            exhausted, or immediately for non-retryable exceptions.
        """
        return await self.retrying(name)(operation)


NO_RETRY = RetryPolicy(max_retries=0)
