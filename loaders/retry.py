"""
Retry utilities for data-source calls.
데이터 소스 호출 재시도 유틸리티

Fetches run outside the core calculations; a failing source is retried
with exponential backoff and then reported to the caller, who skips the
entity for this refresh.
"""
import time
import random
import threading
import logging
from typing import Optional, Callable, Any

logger = logging.getLogger(__name__)


class RetriesExhausted(RuntimeError):
    """All attempts of a fetch failed."""

    def __init__(self, name: str, attempts: int, last_error: Exception):
        self.name = name
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{name}: giving up after {attempts} attempts: {last_error}")


class ExponentialBackoff:
    """
    Exponential backoff handler for source errors.
    지수 백오프 - 연속 오류 시 대기 시간을 지수적으로 증가
    """

    def __init__(
        self,
        initial_delay: float = 1.0,
        max_delay: float = 60.0,
        multiplier: float = 2.0,
        max_retries: int = 3,
        jitter: float = 0.1
    ):
        """
        Initialize exponential backoff.

        Args:
            initial_delay: Initial delay in seconds
            max_delay: Maximum delay cap in seconds
            multiplier: Delay multiplier (e.g., 2.0 = double each time)
            max_retries: Maximum number of retries
            jitter: Random jitter factor (0.1 = ±10%)
        """
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.max_retries = max_retries
        self.jitter = jitter

        self._consecutive_failures = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, retry_config) -> 'ExponentialBackoff':
        return cls(
            initial_delay=retry_config.initial_delay,
            max_delay=retry_config.max_delay,
            multiplier=retry_config.multiplier,
            max_retries=retry_config.max_retries,
            jitter=retry_config.jitter,
        )

    def record_success(self):
        """Record a successful call - resets failure count."""
        with self._lock:
            self._consecutive_failures = 0

    def record_failure(self) -> float:
        """
        Record a failed call and return recommended wait time.

        Returns:
            Recommended wait time in seconds, or -1 if max retries exceeded
        """
        with self._lock:
            self._consecutive_failures += 1

            if self._consecutive_failures > self.max_retries:
                logger.error(
                    f"Max retries ({self.max_retries}) exceeded. "
                    f"Consecutive failures: {self._consecutive_failures}"
                )
                return -1

            delay = self.initial_delay * (
                self.multiplier ** (self._consecutive_failures - 1)
            )
            delay = min(delay, self.max_delay)

            jitter_amount = delay * self.jitter
            delay += random.uniform(-jitter_amount, jitter_amount)

            logger.warning(
                f"Source failure #{self._consecutive_failures}. "
                f"Backing off for {delay:.1f}s"
            )

            return max(0, delay)

    def should_retry(self) -> bool:
        """Check if we should retry after a failure."""
        with self._lock:
            return self._consecutive_failures <= self.max_retries

    def reset(self):
        """Reset backoff state."""
        with self._lock:
            self._consecutive_failures = 0


def fetch_with_retry(
    func: Callable[..., Any],
    *args,
    backoff: Optional[ExponentialBackoff] = None,
    name: str = "fetch",
    sleep: Callable[[float], None] = time.sleep,
    **kwargs
) -> Any:
    """
    Call a data-source function, retrying with exponential backoff.

    Args:
        func: Function to execute
        *args: Arguments to pass to function
        backoff: Backoff policy (a fresh default one if omitted)
        name: Label for log messages
        sleep: Sleep function (injectable for tests)
        **kwargs: Keyword arguments to pass to function

    Returns:
        Function result

    Raises:
        RetriesExhausted: If every attempt failed
    """
    backoff = backoff or ExponentialBackoff()
    backoff.reset()
    attempts = 0

    while True:
        attempts += 1
        try:
            result = func(*args, **kwargs)
            backoff.record_success()
            return result
        except Exception as e:
            wait_time = backoff.record_failure()
            if wait_time < 0:
                raise RetriesExhausted(name, attempts, e) from e
            logger.info(f"[{name}] attempt {attempts} failed: {e}; retrying in {wait_time:.1f}s")
            sleep(wait_time)
