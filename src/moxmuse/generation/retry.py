"""
Retry policy.

Pure decisions only: whether a failure should be retried automatically and
how long to wait first. The orchestrator owns the clock (an injectable
sleep), so none of this needs real timers to test.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from .errors import ClassifiedError, ErrorKind

RetryCondition = Callable[[ClassifiedError], bool]


def transient_only(error: ClassifiedError) -> bool:
    return error.kind == ErrorKind.TRANSIENT


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff with a cap.

    `max_attempts` bounds total requests for one generate() call;
    `auto_retry_limit` bounds how many of those retries happen without the
    caller asking. Past that, only a manual retry() continues.
    """
    max_attempts: int = 3
    base_delay: float = 2.0  # seconds
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    auto_retry_limit: int = 2
    retry_condition: RetryCondition = field(default=transient_only)

    def delay_for(self, retry_count: int) -> float:
        """Wait before retry number `retry_count + 1`."""
        return min(self.base_delay * self.backoff_multiplier ** retry_count, self.max_delay)

    def should_auto_retry(self, error: ClassifiedError, retry_count: int) -> bool:
        """retry_count is how many retries the attempt has already had."""
        if not self.retry_condition(error):
            return False
        if retry_count >= self.auto_retry_limit:
            return False
        return retry_count + 1 < self.max_attempts

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        from moxmuse.config import settings

        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            backoff_multiplier=settings.retry_backoff_multiplier,
            auto_retry_limit=settings.auto_retry_limit,
        )
