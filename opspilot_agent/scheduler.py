"""Agent Scheduler.

In-process trigger that runs every registered agent at a fixed interval.
Uses an asyncio task; no external job queue.

Ticks never overlap: the loop awaits each batch run to completion and
then sleeps for whatever is left of the interval. Manual runs from the
HTTP API or CLI are independent and may run alongside a tick.

Usage:
    scheduler = AgentScheduler(orchestrator, interval=900)
    scheduler.start()  # Non-blocking, spawns background task
    await scheduler.stop()  # Cancels and waits for the in-flight tick
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import datetime

from .models import Trigger, utcnow
from .orchestrator import AgentOrchestrator

logger = logging.getLogger("opspilot.scheduler")


class AgentScheduler:
    """Background trigger for periodic batch runs."""

    def __init__(
        self,
        orchestrator: AgentOrchestrator,
        *,
        interval: float = 900,
        run_immediately: bool = False,
    ):
        self.orchestrator = orchestrator
        self.interval = interval
        self.run_immediately = run_immediately
        self._task: asyncio.Task | None = None
        self.tick_count = 0
        self.last_tick_at: datetime | None = None
        self.last_error: str | None = None

    def start(self) -> None:
        """Start the scheduler as a background task."""
        if self._task and not self._task.done():
            logger.warning("Scheduler already running")
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Agent scheduler started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        """Stop the scheduler and wait for the loop to unwind."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Agent scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def status(self) -> dict:
        return {
            "running": self.is_running,
            "interval_seconds": self.interval,
            "tick_count": self.tick_count,
            "last_tick_at": self.last_tick_at,
            "last_error": self.last_error,
        }

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        if not self.run_immediately:
            await asyncio.sleep(self.interval)
        while True:
            started = time.monotonic()
            try:
                await self._tick()
            except asyncio.CancelledError:
                break
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))

    async def _tick(self) -> None:
        """One scheduled batch run. Errors are logged, never raised."""
        self.tick_count += 1
        self.last_tick_at = utcnow()
        try:
            entries = await self.orchestrator.run_all(trigger=Trigger.SCHEDULED)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.last_error = str(e)
            logger.exception("Scheduled agent run failed")
            return
        self.last_error = None
        failed = [e.name for e in entries if not e.ok]
        if failed:
            logger.warning("Scheduled run: %d agent(s) failed: %s", len(failed), ", ".join(failed))
