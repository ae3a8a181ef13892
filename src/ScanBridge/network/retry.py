"""Retry engine: Tenacity-based fixed-delay retries for async operations.

Bridge downloads and Artifactory lookups run on CI runners with flaky egress.
:class:`RetryEngine` wraps any zero-argument coroutine function and retries it
with a fixed delay until it succeeds, the caller's predicate rejects the
error, or the retry budget is spent.

Design:
- **Bounded by attempts only**: ``max_retries`` additional attempts after the
  first; no deadline. Cancel the awaiting task to abort early.
- **Pluggable predicate**: ``is_retryable(exc)`` is consulted on every failure,
  the first one included. The default, :func:`always_retry`, accepts anything.
- **Original errors**: the exception from the last attempt propagates
  unchanged (``reraise=True``); nothing is wrapped in ``RetryError``.
- **Injectable sleep and logger**: tests pass a recorder instead of
  ``asyncio.sleep``.

Logging contract (INFO): one line with the error message per failed attempt,
plus one retry notice per retry actually scheduled.

Example:
    >>> import asyncio
    >>> from ScanBridge.network.retry import RetryEngine
    >>> engine = RetryEngine(max_retries=3, delay_milliseconds=15000)
    >>> asyncio.run(engine.execute(fetch_versions))  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from ScanBridge.settings import RetrySettings

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
RetryPredicate = Callable[[BaseException], bool]
SleepFunction = Callable[[float], Awaitable[None]]


def always_retry(exc: BaseException) -> bool:
    """Default predicate: every failure is worth another attempt."""
    return True


class RetryPolicy(BaseModel):
    """Retry budget: extra attempts after the first and the pause between them."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(ge=0, description="Additional attempts after the first")
    delay_milliseconds: int = Field(ge=0, description="Pause between attempts")


class RetryEngine:
    """Run an async operation with fixed-delay retries.

    Args:
        max_retries: Additional attempts after the first (``>= 0``).
        delay_milliseconds: Pause between attempts (``>= 0``).
        sleep: Awaitable sleep taking seconds; defaults to ``asyncio.sleep``.
        logger: Destination for failure and retry notices.

    Raises:
        pydantic.ValidationError: If either budget value is negative.
    """

    def __init__(
        self,
        max_retries: int,
        delay_milliseconds: int,
        *,
        sleep: SleepFunction = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.policy = RetryPolicy(max_retries=max_retries, delay_milliseconds=delay_milliseconds)
        self._sleep = sleep
        self._logger = logger or LOGGER

    @classmethod
    def from_settings(
        cls,
        settings: "RetrySettings",
        *,
        sleep: SleepFunction = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> "RetryEngine":
        """Build an engine from :class:`ScanBridge.settings.RetrySettings`."""
        return cls(settings.count, settings.delay_milliseconds, sleep=sleep, logger=logger)

    @property
    def max_retries(self) -> int:
        return self.policy.max_retries

    @property
    def delay_milliseconds(self) -> int:
        return self.policy.delay_milliseconds

    async def execute(
        self,
        operation: Operation[T],
        is_retryable: RetryPredicate = always_retry,
    ) -> T:
        """Await ``operation`` until it succeeds or retrying stops.

        Args:
            operation: Zero-argument callable returning an awaitable.
            is_retryable: Decides whether a failure may be retried.

        Returns:
            The value produced by the first successful attempt.

        Raises:
            Exception: The error from the last attempt, unchanged.
        """
        log = self._logger

        async def _attempt() -> T:
            try:
                return await operation()
            except Exception as exc:
                log.info(str(exc))
                raise

        def _before_sleep(retry_state: RetryCallState) -> None:
            log.info(
                "Retrying in %s seconds (attempt %d of %d, %d retries left)",
                self.delay_milliseconds / 1000,
                retry_state.attempt_number + 1,
                self.max_retries + 1,
                self.max_retries - retry_state.attempt_number,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.delay_milliseconds / 1000),
            # Cancellation and other BaseExceptions are never retried
            retry=retry_if_exception(
                lambda exc: isinstance(exc, Exception) and is_retryable(exc)
            ),
            sleep=self._sleep,
            before_sleep=_before_sleep,
            reraise=True,
        )
        return await retrying(_attempt)


__all__ = [
    "RetryEngine",
    "RetryPolicy",
    "always_retry",
]
