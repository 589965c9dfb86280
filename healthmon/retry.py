"""Bounded retry with exponential backoff for alert delivery.

Transient endpoint failures (connection resets, a restarting collector)
are retried a few times before a delivery is given up on. The scheduler
treats a delivery that is given up on as a failed tick.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """How many times to try a delivery and how long to wait in between.

    Attributes:
        max_attempts: Attempts including the first one
        base_delay: Seconds to wait before the first retry; doubles per retry
        max_delay: Upper bound on any single wait
        retryable_exceptions: Exception types that trigger a retry
    """
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 5.0
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")

    def delay(self, failed_attempts: int) -> float:
        """Wait before the next attempt, after `failed_attempts` failures."""
        return min(self.base_delay * 2 ** (failed_attempts - 1), self.max_delay)


@dataclass
class RetryResult:
    """Outcome of a retried call."""
    success: bool
    result: Any = None
    errors: list[Exception] = field(default_factory=list)

    @property
    def attempts(self) -> int:
        return len(self.errors) + (1 if self.success else 0)

    @property
    def final_error(self) -> Optional[Exception]:
        return self.errors[-1] if self.errors else None


class RetryManager:
    """Calls a function until it succeeds or the configured attempts run out."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep

    def execute(self, func: Callable[..., Any], *args, **kwargs) -> RetryResult:
        """Run func with retries.

        Exceptions outside retryable_exceptions propagate immediately.
        """
        outcome = RetryResult(success=False)
        while True:
            try:
                outcome.result = func(*args, **kwargs)
            except self.config.retryable_exceptions as e:
                outcome.errors.append(e)
            else:
                outcome.success = True
                return outcome

            failed = len(outcome.errors)
            if failed >= self.config.max_attempts:
                return outcome
            wait = self.config.delay(failed)
            logger.warning(
                f"Attempt {failed}/{self.config.max_attempts} failed: {outcome.final_error}. "
                f"Retrying in {wait:.2f}s..."
            )
            (self._sleep or time.sleep)(wait)
