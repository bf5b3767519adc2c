"""
Bounded fire-and-forget task queue for side effects (email notifications).

Requests hand work to the queue and return immediately. Workers run each
job and log failures; nothing a job does can reach the request that
submitted it. When the queue is full the job is dropped with a warning
instead of blocking the caller.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class _Job:
    name: str
    func: Callable[..., Awaitable[Any]]
    args: Tuple[Any, ...] = ()
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class TaskQueue:
    def __init__(self, maxsize: int = 100, workers: int = 2):
        self._maxsize = maxsize
        self._concurrency = max(workers, 1)
        self._queue: Optional[asyncio.Queue] = None
        self._worker_tasks: List[asyncio.Task] = []
        self.dropped = 0

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._worker_tasks)

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def submit(self, name: str, func: Callable[..., Awaitable[Any]], *args: Any) -> bool:
        """Enqueue func(*args). Returns False if the job was dropped."""
        if self._queue is None or not self.running:
            logger.warning(f"Task queue not running; dropping job {name}")
            self.dropped += 1
            return False
        try:
            self._queue.put_nowait(_Job(name=name, func=func, args=args))
        except asyncio.QueueFull:
            logger.warning(f"Task queue full ({self._maxsize}); dropping job {name}")
            self.dropped += 1
            return False
        return True

    async def worker_loop(self, idx: int):
        logger.info(f"Task worker {idx} started")
        while True:
            job = await self._queue.get()
            try:
                await job.func(*job.args)
            except Exception:
                logger.exception(f"Background job {job.name} failed")
            finally:
                self._queue.task_done()

    def start(self) -> List[asyncio.Task]:
        # Created here so the queue binds to the running loop
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self._maxsize)
        self._worker_tasks = [t for t in self._worker_tasks if not t.done()]
        while len(self._worker_tasks) < self._concurrency:
            idx = len(self._worker_tasks)
            self._worker_tasks.append(asyncio.create_task(self.worker_loop(idx)))
        return self._worker_tasks

    async def join(self, timeout: float = 5.0) -> None:
        """Wait until every queued job has finished (or the timeout passes)."""
        if self._queue is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Task queue join timed out with {self.queue_depth} jobs pending")

    async def shutdown(self, drain_timeout: float = 5.0):
        await self.join(drain_timeout)
        for task in self._worker_tasks:
            task.cancel()
        for task in self._worker_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._worker_tasks = []
        self._queue = None
