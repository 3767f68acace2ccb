"""Retry with exponential backoff, and a circuit breaker for background syncs.

Only ``TransportError`` is considered transient.  Authentication and
protocol errors propagate on the first attempt.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ..errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_BACKOFF = 1.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_BACKOFF = 30.0


def retry_with_backoff(
    func: Callable[[], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """Call *func*, retrying ``TransportError`` up to *max_retries* times.

    The delay starts at *initial_backoff* and is multiplied by
    *multiplier* after every failure, capped at *max_backoff*.
    *sleep* defaults to ``time.sleep``.

    Raises:
        TransportError: The last failure once retries are exhausted.
    """
    delay = initial_backoff
    attempt = 0
    while True:
        try:
            return func()
        except TransportError as exc:
            if attempt >= max_retries:
                raise
            attempt += 1
            logger.warning(
                "Transient failure (%s), retry %d/%d in %.1fs",
                exc,
                attempt,
                max_retries,
                delay,
            )
            (sleep or time.sleep)(delay)
            delay = min(delay * multiplier, max_backoff)


class CircuitBreaker:
    """Stop calling a failing remote for a while.

    After *failure_threshold* consecutive failures the breaker opens and
    ``allow()`` returns ``False`` until *reset_timeout* seconds have passed.
    The next call is then let through; a success closes the breaker, a
    failure re-opens it.

    Args:
        failure_threshold: Consecutive failures that open the breaker.
        reset_timeout: Seconds to stay open.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def is_open(self) -> bool:
        if self._opened_at is None:
            return False
        return self._clock() - self._opened_at < self.reset_timeout

    def allow(self) -> bool:
        return not self.is_open

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold:
            if self._opened_at is None or not self.is_open:
                logger.warning(
                    "Circuit opened after %d consecutive failures; pausing for %.0fs",
                    self._failures,
                    self.reset_timeout,
                )
            self._opened_at = self._clock()
