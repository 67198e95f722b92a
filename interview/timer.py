"""Repeating countdown tick backed by one asyncio task."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[bool]]


class QuestionTimer:
    """Owns at most one running tick task.

    ``arm`` always tears down the previous task first, so a session switch or a
    pause can never leave an orphaned tick behind. The callback returns False to
    stop the loop.
    """

    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, on_tick: TickCallback) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(on_tick))

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()

    async def _run(self, on_tick: TickCallback) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                keep_going = await on_tick()
            except Exception:  # noqa: BLE001
                logger.exception("Timer tick failed; stopping countdown")
                return
            if not keep_going:
                return


__all__ = ["QuestionTimer"]
