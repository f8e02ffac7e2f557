"""
Best-effort background task dispatch.

Side effects that must never fail or delay the primary request (geocode
enrichment, service-history recording, vehicle stamping, notifications)
are scheduled here after the primary write has committed.
"""

import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)


class BackgroundTaskDispatcher:
    """
    Schedules fire-and-forget coroutines on the running event loop.

    Each task runs inside its own failure boundary: exceptions are logged
    and dropped, never re-raised into the caller. Strong references are held
    until a task finishes so the event loop cannot garbage-collect it early.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    def dispatch(self, coro: Awaitable, name: str) -> asyncio.Task:
        """
        Schedule a coroutine without awaiting it.

        Args:
            coro: Coroutine to run
            name: Label used in logs

        Returns:
            The created task
        """
        task = asyncio.create_task(self._run_guarded(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Dispatched background task: {name}")
        return task

    async def _run_guarded(self, coro: Awaitable, name: str) -> None:
        try:
            await coro
            logger.debug(f"Background task finished: {name}")
        except asyncio.CancelledError:
            logger.info(f"Background task cancelled: {name}")
            raise
        except Exception as e:
            logger.error(f"Background task {name} failed: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait until every dispatched task (including ones they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


dispatcher = BackgroundTaskDispatcher()


def get_dispatcher() -> BackgroundTaskDispatcher:
    """Return the process-wide dispatcher."""
    return dispatcher
