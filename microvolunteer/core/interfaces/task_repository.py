"""Task Repository Interface

Defines contract for task and participation persistence operations.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from ..entities import Participation, ParticipationStatus, Task, TaskStatus


class TaskScope(ABC):
    """
    Critical section over a single task

    Obtained from ``ITaskRepository.lock_task``. While a scope is held no other
    scope for the same task exists, so ``active_count`` is authoritative and a
    check-then-write sequence is atomic. Writes become visible only when the
    scope exits without an exception; otherwise they are discarded.
    """

    task: Task | None
    active_count: int

    @abstractmethod
    async def find_active_participation(self, participant_id: str) -> Participation | None:
        """Find the participant's ACTIVE participation on this task"""
        pass

    @abstractmethod
    async def add_participation(self, participation: Participation) -> None:
        """Stage a new participation"""
        pass

    @abstractmethod
    async def save_participation(self, participation: Participation) -> None:
        """Stage an update to an existing participation"""
        pass

    @abstractmethod
    async def save_task(self, task: Task) -> None:
        """Stage an update to the locked task"""
        pass


class ITaskRepository(ABC):
    """
    Abstract interface for Task persistence

    Infrastructure layer provides concrete implementations (in-memory, SQL).
    """

    # ========== Task CRUD ==========

    @abstractmethod
    async def save(self, task: Task) -> None:
        """Save or update a task"""
        pass

    @abstractmethod
    async def find_by_id(self, task_id: str) -> Task | None:
        """Find task by ID"""
        pass

    @abstractmethod
    async def find_open_tasks(self, limit: int = 50, offset: int = 0) -> list[Task]:
        """Find OPEN tasks, soonest scheduled first"""
        pass

    @abstractmethod
    async def find_by_creator(
        self, creator_id: str, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        """Find tasks created by a specific principal, newest first"""
        pass

    @abstractmethod
    async def find_by_status(
        self, status: TaskStatus, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        """Find tasks by status, soonest scheduled first"""
        pass

    @abstractmethod
    async def count_by_category(self, category_id: str) -> int:
        """Count tasks (any status) filed under a category"""
        pass

    # ========== Participation Reads ==========

    @abstractmethod
    async def find_participation_by_user_and_task(
        self,
        task_id: str,
        participant_id: str,
        active_only: bool = True,
    ) -> Participation | None:
        """Find a user's most recent participation in a task"""
        pass

    @abstractmethod
    async def find_participations_by_task(
        self,
        task_id: str,
        status: ParticipationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Participation]:
        """Find participations for a task in join order"""
        pass

    @abstractmethod
    async def find_participations_by_user(
        self,
        participant_id: str,
        limit: int = 50,
    ) -> list[Participation]:
        """Find all participations of a user, newest first"""
        pass

    @abstractmethod
    async def count_active_participations(self, task_id: str) -> int:
        """Count ACTIVE participations for a task"""
        pass

    @abstractmethod
    async def count_participations_by_user(
        self, participant_id: str
    ) -> dict[ParticipationStatus, int]:
        """Count a user's participations per status (missing statuses count 0)"""
        pass

    @abstractmethod
    async def rank_participants_by_active(self, limit: int = 10) -> list[tuple[str, int]]:
        """
        (participant_id, ACTIVE participation count) pairs, highest count first

        Ties are ordered by participant_id. Participants without ACTIVE
        participations are not listed.
        """
        pass

    # ========== Atomic Operations ==========

    @abstractmethod
    def lock_task(self, task_id: str) -> AbstractAsyncContextManager[TaskScope]:
        """
        Enter the critical section for one task.

        Usage:
            async with repository.lock_task(task_id) as scope:
                if scope.task is None: ...
                await scope.add_participation(p)

        Raises:
            StorageUnavailableException: If the lock cannot be taken in time
                or the store fails; nothing staged in the scope is persisted.
        """
        pass
