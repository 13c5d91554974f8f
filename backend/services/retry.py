"""
Bounded retry with exponential backoff for remote model calls.

Each attempt is reduced to a tagged outcome (success, retryable failure,
terminal failure) and the loop branches on the tag. Backoff sleeps are
``asyncio.sleep`` suspensions, so concurrent target generations keep running
while one of them waits.
"""

import asyncio
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from services.errors import InputError, TerminalRemoteError, TransientRemoteError
from services.structured_logging import StructuredLogger, get_structured_logger

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY_MS = 1000
DEFAULT_JITTER_MS = 100

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

_RETRYABLE_MESSAGE_PATTERN = re.compile(
    r"\b429\b|\b503\b|\b504\b|rate[\s_-]?limit|resource[\s_]exhausted|quota"
    r"|timed?[\s_-]?out|timeout|deadline[\s_]exceeded|unavailable|overloaded",
    re.IGNORECASE,
)


def is_retryable_message(message: Optional[str]) -> bool:
    return bool(message) and bool(_RETRYABLE_MESSAGE_PATTERN.search(message))


def is_retryable_error(error: BaseException) -> bool:
    """Classify an attempt failure as transient (retry) or fatal."""
    if isinstance(error, TransientRemoteError):
        return True
    if isinstance(error, (TerminalRemoteError, InputError)):
        return False
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return True
    status_code = getattr(error, "code", None)
    if isinstance(status_code, int) and status_code in RETRYABLE_STATUS_CODES:
        return True
    return is_retryable_message(str(error))


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    outcome: AttemptOutcome
    attempts: int
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS

    def unwrap(self) -> T:
        """Return the value, or raise the last underlying error."""
        if self.success:
            return self.value  # type: ignore[return-value]
        if self.error is None:
            raise RuntimeError(f"Retry finished with outcome {self.outcome.value} but no error")
        raise self.error


class RetryExecutor:
    """
    Run an async operation up to ``max_retries`` times in total.

    Delay before retry ``n`` (0-based) is ``base_delay_ms * 2**n`` plus up to
    ``jitter_ms`` of random jitter.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
        *,
        jitter_ms: float = DEFAULT_JITTER_MS,
        classify: Callable[[BaseException], bool] = is_retryable_error,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if base_delay_ms < 0 or jitter_ms < 0:
            raise ValueError("delays must be non-negative")
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.jitter_ms = jitter_ms
        self._classify = classify
        self._sleep = sleep or asyncio.sleep
        self._log = logger or get_structured_logger("retry")

    def backoff_delay_ms(self, attempt: int) -> float:
        delay = self.base_delay_ms * (2 ** attempt)
        if self.jitter_ms:
            delay += random.uniform(0, self.jitter_ms)
        return delay

    async def _attempt(self, op: Callable[[], Awaitable[T]]) -> RetryResult[T]:
        try:
            value = await op()
        except Exception as e:
            outcome = (
                AttemptOutcome.RETRYABLE_FAILURE
                if self._classify(e)
                else AttemptOutcome.TERMINAL_FAILURE
            )
            return RetryResult(outcome=outcome, attempts=0, error=e)
        return RetryResult(outcome=AttemptOutcome.SUCCESS, attempts=0, value=value)

    async def run(
        self,
        op: Callable[[], Awaitable[T]],
        *,
        operation: str = "operation",
    ) -> RetryResult[T]:
        """Run ``op`` with retries and return a tagged result. Never raises for op failures."""
        last: Optional[RetryResult[T]] = None
        for attempt in range(self.max_retries):
            result = await self._attempt(op)
            attempts = attempt + 1

            if result.outcome is AttemptOutcome.SUCCESS:
                if attempt:
                    self._log.info("recovered", operation=operation, attempts=attempts)
                return RetryResult(
                    outcome=result.outcome, attempts=attempts, value=result.value
                )

            last = RetryResult(outcome=result.outcome, attempts=attempts, error=result.error)
            retryable = result.outcome is AttemptOutcome.RETRYABLE_FAILURE
            self._log.warning(
                "attempt_failed",
                operation=operation,
                attempt=attempts,
                max_attempts=self.max_retries,
                retryable=retryable,
                error_type=type(result.error).__name__,
                error=str(result.error),
            )

            if not retryable:
                return last
            if attempts < self.max_retries:
                delay_ms = self.backoff_delay_ms(attempt)
                self._log.info(
                    "backoff", operation=operation, attempt=attempts, delay_ms=delay_ms
                )
                await self._sleep(delay_ms / 1000)

        self._log.error("exhausted", operation=operation, attempts=self.max_retries)
        if last is None:
            raise RuntimeError("Retry loop ended without an attempt")
        return last

    async def execute(
        self,
        op: Callable[[], Awaitable[T]],
        *,
        operation: str = "operation",
    ) -> T:
        """Run ``op`` with retries; on failure raise the last underlying error."""
        return (await self.run(op, operation=operation)).unwrap()


async def execute_with_retry(
    op: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
    **kwargs,
) -> T:
    return await RetryExecutor(max_retries, base_delay_ms, **kwargs).execute(op)
