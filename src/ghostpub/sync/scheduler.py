"""Periodic and change-triggered sync scheduling"""

import asyncio
import logging
from typing import Optional

from ghostpub.sync.engine import SyncEngine


logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs sync_all every interval and debounces per-note change events into sync_file calls."""

    def __init__(self, engine: SyncEngine, interval_minutes: float, debounce_seconds: float) -> None:
        self.engine = engine
        self.interval_minutes = interval_minutes
        self.debounce_seconds = debounce_seconds
        self._periodic: Optional[asyncio.Task] = None
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, engine: SyncEngine) -> "SyncScheduler":
        s = engine.settings
        return cls(engine, s.sync_interval, s.debounce_seconds)

    @property
    def running(self) -> bool:
        return self._periodic is not None and not self._periodic.done()

    def start(self) -> None:
        if self.running:
            return
        self._periodic = asyncio.get_running_loop().create_task(self._run_periodic())
        logger.info("Periodic sync every %s minute(s)", self.interval_minutes)

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self.interval_minutes * 60)
            try:
                await self.engine.sync_all()
            except Exception:
                logger.exception("Periodic sync failed")

    def reconfigure(self, interval_minutes: Optional[float] = None, debounce_seconds: Optional[float] = None) -> None:
        """Apply new timings; a running periodic task is restarted with the new interval."""
        if interval_minutes is not None:
            self.interval_minutes = interval_minutes
        if debounce_seconds is not None:
            self.debounce_seconds = debounce_seconds
        if self.running:
            self._periodic.cancel()
            self._periodic = None
            self.start()

    def notify_changed(self, path: str) -> None:
        """Record a modification; sync_file runs once the note has been quiet for the debounce period."""
        if not self.engine.should_sync(path):
            return
        if timer := self._timers.pop(path, None):
            timer.cancel()
        loop = asyncio.get_running_loop()
        self._timers[path] = loop.call_later(self.debounce_seconds, self._fire, path)

    def pending_paths(self) -> list[str]:
        return sorted(self._timers)

    def _fire(self, path: str) -> None:
        self._timers.pop(path, None)
        task = asyncio.get_running_loop().create_task(self.engine.sync_file(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for change-triggered syncs already started."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel timers, the periodic task, in-flight syncs and pending write-backs."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        tasks = list(self._tasks) + self.engine.cancel_pending()
        if self._periodic is not None:
            tasks.append(self._periodic)
            self._periodic = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Scheduler stopped")
