"""Periodic background sync.

``AutoSyncScheduler`` is an explicit handle owned by whoever owns the
process lifecycle (the MCP server lifespan or the CLI ``watch`` command).
It has two transitions, ``start()`` and ``stop()``, and never has more
than one timer task outstanding.

Background failures are logged and never raised: a tick that finds a
cycle already running is skipped, and repeated transport failures open a
circuit breaker that pauses ticks for a while.
"""

from __future__ import annotations

import asyncio
import logging

from ..core.retry import CircuitBreaker
from ..errors import AuthError, SyncInProgressError, TransportError
from .engine import SyncEngine

logger = logging.getLogger(__name__)


class AutoSyncScheduler:
    """Run ``engine.run(wait=False)`` every *interval* seconds.

    Args:
        engine: The sync engine to drive.
        interval: Seconds between ticks; ``<= 0`` disables the timer.
        breaker: Circuit breaker for transport failures.
    """

    def __init__(
        self,
        engine: SyncEngine,
        interval: float = 0,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.engine = engine
        self.interval = interval
        self.breaker = breaker or CircuitBreaker()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the timer if enabled and not already running.

        Returns:
            ``True`` if a timer is running after the call.
        """
        if self.running:
            return True
        if self.interval <= 0:
            logger.info("Auto sync disabled")
            return False
        logger.info("Auto sync every %.0f seconds", self.interval)
        self._task = asyncio.create_task(
            self._loop(), name="todoist-auto-sync"
        )
        return True

    async def stop(self) -> None:
        """Cancel the pending timer and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Auto sync stopped")

    async def reschedule(self, interval: float) -> bool:
        """Replace the interval, restarting the timer."""
        await self.stop()
        self.interval = interval
        return self.start()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    async def tick(self) -> None:
        """Run one background cycle, logging instead of raising."""
        if not self.breaker.allow():
            logger.info("Auto sync skipped: circuit open")
            return
        try:
            report = await self.engine.run(wait=False)
        except SyncInProgressError:
            logger.info("Auto sync skipped: a sync is already running")
        except AuthError as e:
            logger.error("Auto sync failed, check the API token: %s", e)
        except TransportError as e:
            self.breaker.record_failure()
            logger.warning("Auto sync failed: %s", e)
        except Exception:
            logger.exception("Auto sync failed")
        else:
            self.breaker.record_success()
            logger.debug(report.summary())
