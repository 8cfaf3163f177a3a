"""
Rate limiting utilities: local request pacing, the overall operation deadline
and waiting out GitHub's quota window.
"""

import time
import logging
from typing import Callable, Optional
from datetime import datetime

logger = logging.getLogger(__name__)

# Extra wait after the reported reset time
RESET_BUFFER_SECONDS = 1.0


class RateLimitExceeded(Exception):
    """Raised when GitHub API rate limit is exceeded."""
    def __init__(self, reset_at: Optional[datetime] = None):
        self.reset_at = reset_at
        if reset_at:
            super().__init__(f"Rate limit exceeded. Resets at {reset_at}")
        else:
            super().__init__("Rate limit exceeded")


class DeadlineExceeded(TimeoutError):
    """Raised when waiting would run past the overall operation deadline."""


class Deadline:
    """
    Wall-clock budget for a whole operation.

    Args:
        seconds: Budget in seconds, counted from construction
        clock: Monotonic clock function
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._expires = clock() + seconds

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self._expires - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self._expires

    def check(self, wait: float = 0.0):
        """
        Raise DeadlineExceeded if waiting `wait` seconds would pass the deadline.
        """
        if self.expired() or wait > self.remaining():
            raise DeadlineExceeded(
                f"operation deadline of {self.seconds:.0f}s exceeded"
            )


class RateLimiter:
    """
    Token bucket with a burst of one: acquisitions are spaced at least
    1/rate seconds apart. The first acquisition never blocks.
    """

    def __init__(
        self,
        rate: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            rate: Maximum requests per second
            clock: Monotonic clock function
            sleep: Sleep function
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.interval = 1.0 / rate
        self._clock = clock
        self._sleep = sleep
        self._next_slot: Optional[float] = None

    def acquire(self, deadline: Optional[Deadline] = None):
        """
        Wait for the next free slot.

        Args:
            deadline: Fail with DeadlineExceeded instead of waiting past it
        """
        now = self._clock()
        wait = 0.0
        if self._next_slot is not None:
            wait = max(0.0, self._next_slot - now)

        if deadline is not None:
            deadline.check(wait)

        if wait > 0:
            logger.debug(f"Rate limiter: waiting {wait:.3f}s for next slot")
            self._sleep(wait)

        self._next_slot = now + wait + self.interval


def wait_until_reset(
    reset_at: datetime,
    deadline: Optional[Deadline] = None,
    now: Optional[Callable[[], datetime]] = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Sleep until the quota window resets.

    Args:
        reset_at: Timezone-aware reset time reported by GitHub
        deadline: Fail with DeadlineExceeded instead of waiting past it
        now: Function returning the current aware datetime
        sleep: Sleep function
    """
    current = now() if now else datetime.now(reset_at.tzinfo)
    wait_time = max(0.0, (reset_at - current).total_seconds()) + RESET_BUFFER_SECONDS

    if deadline is not None:
        deadline.check(wait_time)

    logger.warning(f"Rate limit exceeded. Waiting {wait_time:.1f}s until reset")
    sleep(wait_time)
