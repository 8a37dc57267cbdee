# exam_engine/services/timer.py
# Session-wide countdown; ticks on the asyncio loop when one is running, otherwise the owner calls tick().
import asyncio
from typing import Callable, Optional

from exam_engine.utils.config import settings
from exam_engine.utils.logger import logger


class SessionTimer:
    def __init__(self, duration_seconds: int, on_expire: Optional[Callable[[], None]] = None,
                 tick_interval: float = settings.timer_tick_seconds):
        if duration_seconds < 0:
            raise ValueError("duration_seconds must not be negative")
        self.duration_seconds = int(duration_seconds)
        self.remaining = int(duration_seconds)
        self.on_expire = on_expire
        self.tick_interval = tick_interval
        self._running = False
        self._expired = False
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_minutes(cls, minutes: float, on_expire: Optional[Callable[[], None]] = None, **kwargs) -> "SessionTimer":
        return cls(int(round(minutes * 60)), on_expire=on_expire, **kwargs)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self):
        """Starts (or resumes) the countdown."""
        if self._cancelled or self._expired or self._running:
            return
        self._running = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; timer ticks are driven by the owner.")
            return
        self._task = loop.create_task(self._run())

    async def _run(self):
        try:
            while self._running:
                await asyncio.sleep(self.tick_interval)
                if not self._running:
                    break
                self.tick()
        except asyncio.CancelledError:
            pass

    def tick(self) -> int:
        """Advances the countdown by one second and fires the expiry callback once on reaching zero."""
        if not self._running:
            return self.remaining
        self.remaining = max(0, self.remaining - 1)
        if self.remaining == 0:
            self._expire()
        return self.remaining

    def _expire(self):
        self._expired = True
        self._stop_ticking()
        logger.info(f"Timer expired after {self.duration_seconds}s.")
        if self.on_expire is not None:
            self.on_expire()

    def pause(self):
        """Stops ticking but keeps the remaining time."""
        self._stop_ticking()

    def cancel(self):
        """Tears the timer down for good; no callback is delivered afterwards."""
        self._cancelled = True
        self.on_expire = None
        self._stop_ticking()

    def _stop_ticking(self):
        self._running = False
        task, self._task = self._task, None
        if task is None or task.done():
            return
        loop = task.get_loop()
        if loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is not loop:
            loop.call_soon_threadsafe(task.cancel)
        elif task is not asyncio.current_task():
            # The tick task stops itself via the _running flag when expiry happens inside it.
            task.cancel()
