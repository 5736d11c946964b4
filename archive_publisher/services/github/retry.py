"""
Bounded exponential-backoff retry around a single GitHub API call.

Calls that can fail transiently (network errors, 5xx, rate limits) are
wrapped in RetryingCaller.call(). Every attempt first goes through the shared
RateLimiter. A caller and its limiter are built per publication run from
PublishOptions (see RetryingCaller.from_options).
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from archive_publisher.entities import PublishOptions
from archive_publisher.services.github.exceptions import (
    RETRYABLE_ERRORS,
    GithubConfigurationError,
    GithubRetriesExhaustedError,
)
from archive_publisher.services.github.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay slept before `attempt` (1-based): 0, base, 2*base, 4*base, ..."""
    if attempt < 2:
        return 0.0
    return base_delay * 2 ** (attempt - 2)


class wait_backoff_or_retry_after(wait_base):
    """
    Exponential backoff that never undercuts a server-provided retry_after.

    The delay before the next attempt is max(backoff_delay, retry_after of the
    failed attempt), capped by max_delay when one is set.
    """

    def __init__(self, base_delay: float, max_delay: Optional[float] = None):
        self.base_delay = base_delay
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = backoff_delay(retry_state.attempt_number + 1, self.base_delay)

        error = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(error, "retry_after", None)
        if retry_after:
            delay = max(delay, float(retry_after))

        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


class RetryingCaller:
    """
    Runs a remote operation with at most `max_retries` total attempts.

    Delay before attempt k (k >= 2) is base_delay * 2^(k-2), raised to the
    error's retry_after for rate limits. Only RETRYABLE_ERRORS are retried;
    anything else (bad credentials, 404, validation errors) propagates from
    the first attempt.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            rate_limiter: Shared limiter acquired before every attempt
            max_retries: Total number of attempts (first try included)
            base_delay: Delay before the second attempt, doubled afterwards
            max_delay: Optional cap on a single backoff delay
            sleep: Sleep function used for backoff (injectable for tests)
        """
        if max_retries < 1:
            raise GithubConfigurationError("max_retries must be at least 1")
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep

    @classmethod
    def from_options(
        cls,
        options: PublishOptions,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> "RetryingCaller":
        """Caller with a fresh RateLimiter, paced and bounded by one run's options."""
        limiter = RateLimiter(min_interval=options.rate_limit_delay, clock=clock, sleep=sleep)
        return cls(
            limiter,
            max_retries=options.max_retries,
            base_delay=options.base_retry_delay,
            sleep=sleep,
        )

    def _log_before_sleep(self, description: str) -> Callable[[RetryCallState], None]:
        def _before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.warning(
                f"Retry {retry_state.attempt_number}/{self.max_retries} - {description} "
                f"failed with {error!r}, retrying in {delay:.2f}s"
            )

        return _before_sleep

    def call(self, operation: Callable[[], T], description: str = "GitHub call") -> T:
        """
        Execute `operation` with retry.

        Raises:
            GithubRetriesExhaustedError: Every attempt failed with a retryable error.
            Exception: Any non-retryable error, unchanged.
        """

        def _attempt() -> T:
            self.rate_limiter.acquire()
            return operation()

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_backoff_or_retry_after(self.base_delay, self.max_delay),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=self._log_before_sleep(description),
            sleep=self._sleep,
            reraise=False,
        )

        try:
            return retrying(_attempt)
        except RetryError as exc:
            last_error = exc.last_attempt.exception() if exc.last_attempt else exc
            logger.error(
                f"Giving up on {description} after {self.max_retries} attempts: {last_error}"
            )
            raise GithubRetriesExhaustedError(
                f"{description} failed after {self.max_retries} attempts: {last_error}",
                last_error=last_error,
                attempts=self.max_retries,
            ) from last_error
