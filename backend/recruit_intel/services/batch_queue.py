"""
Batch Work Queue - fixed-size concurrent groups with an inter-group pause

Tasks are zero-argument coroutine functions. The queue drains them in
groups of `batch_size`, running each group with asyncio.gather, then sleeps
`batch_delay` seconds before starting the next group. Only the group
boundary synchronizes: tasks inside a group race.

A failing task never cancels its siblings. The failure is logged, counted
and set on that task's own future, and the group treats its result as None.

One queue is built per process and injected where it is needed. There is
no priority and no cancellation: once submitted, a task runs to completion
or failure.

Usage:
    queue = BatchQueue(batch_size=3, batch_delay=5.0)
    future = queue.submit(lambda: analyze(submission))
    analysis = await future
"""

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, List, Optional, Tuple

from recruit_intel.middleware.metrics import record_batch_task_failure

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[Any]]


class BatchQueue:
    def __init__(self, batch_size: int = 3, batch_delay: float = 5.0):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._pending: Deque[Tuple[TaskFactory, asyncio.Future]] = deque()
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def submit(self, task: TaskFactory) -> asyncio.Future:
        """
        Enqueue a task and return a future for its own outcome.

        The future resolves with the task's return value or carries the
        exception the task raised.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append((task, future))
        if not self.is_draining:
            self._drain_task = loop.create_task(self._drain())
        return future

    async def _run(self, task: TaskFactory, future: asyncio.Future) -> Any:
        try:
            result = await task()
        except Exception as e:
            logger.error(f"Batch task failed: {e.__class__.__name__}: {e}")
            record_batch_task_failure()
            if not future.done():
                future.set_exception(e)
            return None

        if not future.done():
            future.set_result(result)
        return result

    async def _drain(self) -> None:
        while self._pending:
            group: List[Tuple[TaskFactory, asyncio.Future]] = [
                self._pending.popleft()
                for _ in range(min(self.batch_size, len(self._pending)))
            ]
            logger.info(f"Processing batch of {len(group)} tasks")
            await asyncio.gather(*(self._run(task, future) for task, future in group))

            if self._pending:
                await asyncio.sleep(self.batch_delay)
