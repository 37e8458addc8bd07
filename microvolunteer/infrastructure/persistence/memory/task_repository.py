"""In-memory Implementation of ITaskRepository

Process-local storage for development and tests. Joins on the same task are
serialised by a per-task asyncio.Lock; entities are copied on the way in and
out so callers can never mutate stored state outside a scope.
"""

from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from copy import deepcopy

from ....core.entities import Participation, ParticipationStatus, Task, TaskStatus
from ....core.interfaces import ITaskRepository, TaskScope
from ...locks import TaskLockRegistry


class _MemoryTaskScope(TaskScope):
    """Buffers writes until the owning lock_task block exits cleanly"""

    def __init__(self, repository: "InMemoryTaskRepository", task_id: str) -> None:
        self._repository = repository
        self.task = repository._get_task(task_id)
        self.active_count = repository._count_active(task_id)
        self._pending_task: Task | None = None
        self._pending_participations: dict[str, Participation] = {}

    async def find_active_participation(self, participant_id: str) -> Participation | None:
        if self.task is None:
            return None
        for p in self._pending_participations.values():
            if p.participant_id == participant_id and p.is_active():
                return deepcopy(p)
        return await self._repository.find_participation_by_user_and_task(
            self.task.task_id, participant_id, active_only=True
        )

    async def add_participation(self, participation: Participation) -> None:
        self._pending_participations[participation.participation_id] = deepcopy(participation)

    async def save_participation(self, participation: Participation) -> None:
        self._pending_participations[participation.participation_id] = deepcopy(participation)

    async def save_task(self, task: Task) -> None:
        self._pending_task = deepcopy(task)

    def _commit(self) -> None:
        if self._pending_task is not None:
            self._repository._tasks[self._pending_task.task_id] = self._pending_task
        self._repository._participations.update(self._pending_participations)


class InMemoryTaskRepository(ITaskRepository):
    """
    Dict-backed TaskRepository.

    - Tasks          → dict keyed by task_id
    - Participations → dict keyed by participation_id (insertion order = join order)
    """

    def __init__(
        self,
        locks: TaskLockRegistry | None = None,
        lock_timeout: float | None = None,
    ) -> None:
        self._tasks: dict[str, Task] = {}
        self._participations: dict[str, Participation] = {}
        self._locks = locks or TaskLockRegistry()
        self._lock_timeout = lock_timeout

    # ---- Internal helpers ---------------------------------------------------

    def _get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return deepcopy(task) if task else None

    def _count_active(self, task_id: str) -> int:
        return sum(
            1
            for p in self._participations.values()
            if p.task_id == task_id and p.status == ParticipationStatus.ACTIVE
        )

    # =========================================================================
    # Task CRUD
    # =========================================================================

    async def save(self, task: Task) -> None:
        self._tasks[task.task_id] = deepcopy(task)

    async def find_by_id(self, task_id: str) -> Task | None:
        return self._get_task(task_id)

    async def find_open_tasks(self, limit: int = 50, offset: int = 0) -> list[Task]:
        tasks = sorted(
            (t for t in self._tasks.values() if t.status == TaskStatus.OPEN),
            key=lambda t: t.scheduled_at,
        )
        return [deepcopy(t) for t in tasks[offset : offset + limit]]

    async def find_by_creator(
        self, creator_id: str, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        tasks = sorted(
            (t for t in self._tasks.values() if t.creator_id == creator_id),
            key=lambda t: t.created_at,
            reverse=True,
        )
        return [deepcopy(t) for t in tasks[offset : offset + limit]]

    async def find_by_status(
        self, status: TaskStatus, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        tasks = sorted(
            (t for t in self._tasks.values() if t.status == status),
            key=lambda t: t.scheduled_at,
        )
        return [deepcopy(t) for t in tasks[offset : offset + limit]]

    async def count_by_category(self, category_id: str) -> int:
        return sum(1 for t in self._tasks.values() if t.category_id == category_id)

    # =========================================================================
    # Participation Reads
    # =========================================================================

    async def find_participation_by_user_and_task(
        self,
        task_id: str,
        participant_id: str,
        active_only: bool = True,
    ) -> Participation | None:
        latest: Participation | None = None
        for p in self._participations.values():
            if p.task_id != task_id or p.participant_id != participant_id:
                continue
            if active_only and not p.is_active():
                continue
            if latest is None or p.joined_at >= latest.joined_at:
                latest = p
        return deepcopy(latest) if latest else None

    async def find_participations_by_task(
        self,
        task_id: str,
        status: ParticipationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Participation]:
        results = [
            p
            for p in self._participations.values()
            if p.task_id == task_id and (status is None or p.status == status)
        ]
        return [deepcopy(p) for p in results[offset : offset + limit]]

    async def find_participations_by_user(
        self,
        participant_id: str,
        limit: int = 50,
    ) -> list[Participation]:
        results = [p for p in self._participations.values() if p.participant_id == participant_id]
        results.reverse()
        return [deepcopy(p) for p in results[:limit]]

    async def count_active_participations(self, task_id: str) -> int:
        return self._count_active(task_id)

    async def count_participations_by_user(
        self, participant_id: str
    ) -> dict[ParticipationStatus, int]:
        counts = dict.fromkeys(ParticipationStatus, 0)
        for p in self._participations.values():
            if p.participant_id == participant_id:
                counts[p.status] += 1
        return counts

    async def rank_participants_by_active(self, limit: int = 10) -> list[tuple[str, int]]:
        counts = Counter(p.participant_id for p in self._participations.values() if p.is_active())
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]

    # =========================================================================
    # Atomic Operations (per-task asyncio.Lock)
    # =========================================================================

    @asynccontextmanager
    async def lock_task(self, task_id: str) -> AsyncIterator[TaskScope]:
        async with self._locks.hold(task_id, timeout=self._lock_timeout):
            scope = _MemoryTaskScope(self, task_id)
            yield scope
            scope._commit()
