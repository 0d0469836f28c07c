"""
Detached background work.

Slack expects an HTTP acknowledgment within a few seconds, while a summary
needs several chained API calls. Handlers acknowledge first and hand the
real work to ``DetachedTaskRunner.spawn``; the task is not tied to the
request and is never cancelled, only awaited on shutdown.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class DetachedTaskRunner:

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        # The event loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(f"Spawned detached task {task.get_name()}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Detached task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Detached task {task.get_name()} failed: {exc}", exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for running tasks to finish."""
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} detached tasks to finish")
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} detached tasks still running at shutdown")


task_runner = DetachedTaskRunner()


def get_task_runner() -> DetachedTaskRunner:
    return task_runner
