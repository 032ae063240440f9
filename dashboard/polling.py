"""Interval polling as an owned asyncio task.

A :class:`PollingScheduler` wakes up every *interval* seconds and awaits its
*tick* coroutine, but only when *predicate* says there is something worth
fetching.  Ticks never overlap: the next sleep starts after the previous tick
has finished.  A tick that raises is logged and polling carries on.

The task is a resource with an explicit lifecycle.  Prefer the async context
manager, which cancels the task on every exit path::

    async with controller.polling():
        await run_view()
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from dashboard.logging_utils import get_logger

logger = get_logger("polling")


class PollingScheduler:
    def __init__(
        self,
        tick: Callable[[], Awaitable[Any]],
        interval: float,
        predicate: Optional[Callable[[], bool]] = None,
        name: str = "poll",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._tick = tick
        self._predicate = predicate
        self.interval = interval
        self.name = name
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick_once(self) -> bool:
        """Run one tick.  Returns ``False`` if the predicate skipped it."""
        if self._predicate is not None and not self._predicate():
            logger.debug("[%s] nothing pending, skipping tick", self.name)
            return False
        await self._tick()
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick_once()
            except Exception:
                # Keep polling after a failed tick.
                logger.exception("[%s] tick failed", self.name)

    def start(self) -> None:
        """Start the polling task.  Starting twice is an error."""
        if self.running:
            raise RuntimeError(f"poller {self.name!r} is already running")
        self._task = asyncio.create_task(self._run(), name=f"poller-{self.name}")
        logger.debug("[%s] started (every %.1fs)", self.name, self.interval)

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("[%s] stopped", self.name)

    async def __aenter__(self) -> "PollingScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()
