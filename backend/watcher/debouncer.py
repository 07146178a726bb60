"""
BuildWatch Debouncer.

Single-slot, re-armable delay timer for coalescing bursts of events.
Requires Python 3.11+.
"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

from utils.logger import LoggerMixin


class DebounceScheduler(LoggerMixin):
    """
    Fires a callback once after a quiet period.

    Every schedule() call before expiry cancels the pending timer and
    starts a new one, so the callback runs only after a full delay with
    no further calls. Uses asyncio.Task and must be driven from a
    running event loop.
    """

    def __init__(self) -> None:
        """Initialize the scheduler with no pending timer."""
        self._task: asyncio.Task[None] | None = None

    def schedule(self, callback: Callable[[], Any], delay_ms: int) -> None:
        """
        Arm (or re-arm) the timer.

        Args:
            callback: Sync or async function called with no arguments
            delay_ms: Quiet period in milliseconds
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._wait_and_fire(callback, delay_ms / 1000.0)
        )

    def cancel(self) -> None:
        """Drop the pending timer, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    @property
    def pending(self) -> bool:
        """Check if a fire is still outstanding."""
        return self._task is not None and not self._task.done()

    async def _wait_and_fire(self, callback: Callable[[], Any], delay: float) -> None:
        """Wait for delay then run the callback."""
        await asyncio.sleep(delay)

        # Detach first so a re-arm from inside the callback cannot cancel it
        self._task = None

        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.log.error("debounce_callback_failed", error=str(e), exc_info=True)
