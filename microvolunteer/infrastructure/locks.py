"""Per-task locks

Serialises work on the same task inside one process while leaving different
tasks fully concurrent. Locks are created on demand and dropped once nobody
holds or waits for them.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from ..core.exceptions import StorageUnavailableException

logger = structlog.get_logger()


class TaskLockRegistry:
    """asyncio.Lock per task id, reference counted"""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, task_id: str, timeout: float | None = None) -> AsyncIterator[None]:
        """
        Hold the lock for task_id

        Args:
            task_id: Task identifier
            timeout: Seconds to wait for the lock (None = wait forever)

        Raises:
            StorageUnavailableException: If the lock is not acquired in time
        """
        lock = self._locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[task_id] = lock
        self._refs[task_id] = self._refs.get(task_id, 0) + 1

        try:
            try:
                async with asyncio.timeout(timeout):
                    await lock.acquire()
            except TimeoutError as e:
                logger.warning("task_lock_timeout", task_id=task_id, timeout=timeout)
                raise StorageUnavailableException(
                    f"Timed out waiting for task {task_id}"
                ) from e
            try:
                yield
            finally:
                lock.release()
        finally:
            self._refs[task_id] -= 1
            if self._refs[task_id] == 0:
                del self._refs[task_id]
                del self._locks[task_id]
