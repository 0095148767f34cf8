"""
In-process background task runner.

Runs fire-and-forget coroutines (vector sync after a work note mutation)
on the running event loop. The runner keeps a strong reference to every
task until it finishes, logs failures that escaped the coroutine, and can
drain outstanding work on shutdown.

Dependencies: asyncio, notegraph.observability
System role: Hand-off point between committed writes and async embedding
"""

import asyncio
import logging
from typing import Any, Coroutine

from notegraph.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """
    Tracks fire-and-forget asyncio tasks.

    Attributes:
        pending: Tasks submitted and not yet finished
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """
        Schedule a coroutine without awaiting it.

        Must be called from inside a running event loop.

        Args:
            coro: Coroutine to run
            name: Task name used in logs

        Returns:
            asyncio.Task: The scheduled task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(f"{__name__}:submit - Scheduled {task.get_name()}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"{__name__}:_on_done - Task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            log_exception_with_context(
                logger,
                f"{__name__}:_on_done - Background task failed",
                exc,
                task_name=task.get_name(),
            )

    async def drain(self, timeout: float | None = None) -> None:
        """
        Wait until every submitted task has finished.

        Tasks submitted while draining are awaited as well.

        Args:
            timeout: Seconds to wait per round before giving up (None waits forever)
        """
        while self._tasks:
            done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
            if not_done and timeout is not None:
                logger.warning(
                    f"{__name__}:drain - {len(not_done)} tasks still running after {timeout}s"
                )
                return
            # Let done-callbacks run before re-checking the set.
            await asyncio.sleep(0)
