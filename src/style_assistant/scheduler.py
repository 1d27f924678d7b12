"""Single-threaded delayed-callback scheduler with generation guards.

Each session owns one scheduler per timeline.  Starting a new turn bumps the
generation; callbacks captured under an older generation are dropped when
they fire, so superseded timers never resurrect stale state.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)


class DelayScheduler:
    """Runs callbacks after a wall-clock delay on the running event loop."""

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._generation = 0
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def bump(self) -> int:
        """Start a new generation, invalidating every pending callback."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def schedule(
        self,
        delay: float,
        callback: Callable[[], Any],
        *,
        label: str = "",
    ) -> asyncio.Task[None] | None:
        """Run *callback* after *delay* seconds if the generation is unchanged.

        A non-positive delay runs the callback inline and returns ``None``.
        Otherwise the returned task is tracked until it finishes.
        """
        if delay <= 0:
            callback()
            return None

        generation = self._generation

        async def _fire() -> None:
            await asyncio.sleep(delay)
            if not self.is_current(generation):
                logger.debug(
                    "stale_callback_dropped",
                    scheduler=self.name,
                    label=label,
                    generation=generation,
                    current=self._generation,
                )
                return
            callback()

        task = asyncio.get_running_loop().create_task(_fire())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every pending callback, including ones they schedule, has run."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
