"""
Countdown timer for practice sprints.

The timer owns a remaining-seconds counter and, while enabled, an
asyncio task that decrements it once per tick interval. Reaching
zero stops the task and fires the expiry callback exactly once.
Disabling only cancels the task: the counter keeps its value and a
later enable resumes from there.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

ExpiryCallback = Callable[[], Union[Awaitable[None], None]]

SAFE = "safe"
WARNING = "warning"
CRITICAL = "critical"


def format_seconds(seconds: int) -> str:
    """Format seconds as MM:SS."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


class CountdownTimer:
    """One-second countdown with pause/resume and an expiry callback."""

    def __init__(
        self,
        duration_seconds: int,
        on_expire: Optional[ExpiryCallback] = None,
        tick_interval: float = 1.0,
        remaining_seconds: Optional[int] = None
    ):
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")

        self.duration_seconds = duration_seconds
        self.on_expire = on_expire
        self.tick_interval = tick_interval
        self.remaining_seconds = (
            duration_seconds if remaining_seconds is None
            else max(0, remaining_seconds)
        )
        self.expired = False
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self._task is not None

    @property
    def progress(self) -> float:
        elapsed = self.duration_seconds - self.remaining_seconds
        return min(1.0, max(0.0, elapsed / self.duration_seconds))

    @property
    def urgency(self) -> str:
        percentage = self.remaining_seconds / self.duration_seconds * 100
        if percentage > 50:
            return SAFE
        if percentage > 25:
            return WARNING
        return CRITICAL

    @property
    def display(self) -> str:
        return format_seconds(self.remaining_seconds)

    def enable(self) -> None:
        """Start (or resume) counting down from the current value."""
        if self.enabled or self.expired:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def disable(self) -> None:
        """Stop counting down; the remaining value is left as is."""
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def reset(self, remaining_seconds: Optional[int] = None) -> None:
        """Disable and rewind to the full duration (or a given value)."""
        self.disable()
        self.remaining_seconds = (
            self.duration_seconds if remaining_seconds is None
            else max(0, remaining_seconds)
        )
        self.expired = False

    def close(self) -> None:
        self.disable()

    async def tick(self) -> bool:
        """
        Apply one decrement.

        Returns True when this tick expired the countdown. Ticks after
        expiry are ignored.
        """
        if self.expired:
            return False

        if self.remaining_seconds > 1:
            self.remaining_seconds -= 1
            return False

        self.remaining_seconds = 0
        self.expired = True
        self.disable()
        await self._fire_expiry()
        return True

    async def _fire_expiry(self) -> None:
        if self.on_expire is None:
            return
        try:
            result = self.on_expire()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(f"Timer expiry callback failed: {e}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if await self.tick():
                return
