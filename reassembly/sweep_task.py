"""Background task for dead-lettering expired chunk entries between invocations."""

import asyncio
import logging
from typing import Optional

from reassembly.expiry import ExpirySweeper

logger = logging.getLogger(__name__)


class ExpirySweepTask:
    """
    Background task that periodically runs an expiry sweep.

    Complements the sweep every invocation already does, so that a quiet
    service still dead-letters stale chunk sets.
    """

    def __init__(self, sweeper: ExpirySweeper, interval_seconds: float):
        """
        Initialize sweep task.

        Args:
            sweeper: Sweeper to run
            interval_seconds: Time between sweeps
        """
        self.sweeper = sweeper
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Sweep task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started expiry sweep task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Stopped expiry sweep task")

    async def _run(self) -> None:
        """Main loop for sweep task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.sweep_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sweep task: {e}", exc_info=True)

    async def sweep_once(self):
        """Run one sweep off the event loop."""
        report = await asyncio.to_thread(self.sweeper.sweep)
        logger.debug(
            f"Sweep cycle complete: {len(report.moved)} moved, {len(report.failed)} failed"
        )
        return report
