"""
Background reclamation of abandoned holds.

A hold's only timeout is its expires_at: an abandoned checkout frees its
tickets at the first tick after the deadline, so inventory can stay held up
to one interval longer than the hold window.
"""

import asyncio
import time
from datetime import datetime
from typing import Optional

from ticket_inventory.core.logging import get_logger
from ticket_inventory.core.metrics import sweep_duration
from ticket_inventory.services.hold_manager import HoldManager

logger = get_logger(__name__)


class ExpirySweeper:
    def __init__(self, holds: HoldManager, interval_seconds: float):
        self._holds = holds
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._shutdown: Optional[asyncio.Event] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self, now: Optional[datetime] = None) -> int:
        """
        Expire every ACTIVE hold whose deadline has passed.

        A failure on one hold is logged and the sweep moves on.
        Returns the number of holds expired.
        """
        start = time.perf_counter()
        expired = 0
        failed = 0

        for hold_id in self._holds.expired_hold_ids(now):
            try:
                if self._holds.expire_hold(hold_id):
                    expired += 1
            except Exception as e:
                failed += 1
                logger.error("hold_expiry_failed", hold_id=hold_id, error=str(e))

        self.ticks += 1
        elapsed = time.perf_counter() - start
        sweep_duration.observe(elapsed)
        if expired or failed:
            logger.info(
                "sweep_completed",
                expired=expired,
                failed=failed,
                duration_ms=round(elapsed * 1000, 2),
            )
        return expired

    def start(self) -> None:
        if self.running:
            return
        self._shutdown = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._shutdown))
        logger.info("sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._shutdown.set()
        task, self._task = self._task, None
        await task
        logger.info("sweeper_stopped", ticks=self.ticks)

    async def _run(self, shutdown: asyncio.Event) -> None:
        while not shutdown.is_set():
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                try:
                    self.sweep_once()
                except Exception:
                    logger.exception("sweep_failed")
