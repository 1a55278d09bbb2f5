"""Cancellable fire-once delayed task for coalescing rapid triggers."""
import asyncio
from typing import Awaitable, Callable, Optional

from storefront.logging import get_logger

logger = get_logger(__name__)


class Debouncer:
    """
    Runs an async callback once the trigger has been quiet for `delay` seconds.

    Each trigger cancels the pending run and starts the quiet period again, so
    a burst of triggers produces a single call. Must be triggered from inside
    a running event loop.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float):
        self._callback = callback
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        """(Re)start the quiet period."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run_later())

    def cancel(self) -> None:
        """Drop the pending run, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Run the pending callback now instead of waiting out the delay."""
        if not self.pending:
            return
        self.cancel()
        await self._callback()

    async def _run_later(self) -> None:
        await asyncio.sleep(self.delay)
        # Detach before running so a trigger from inside the callback starts fresh
        self._task = None
        try:
            await self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
