"""Task Lifecycle Manager

Task creation, editing and the status state machine
(OPEN → IN_PROGRESS → COMPLETED, with CANCELLED reachable from both
non-terminal states). Mutations run inside the same per-task critical section
as joins, so a join never lands in a task that is being cancelled.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

import structlog

from ..core.entities import TASK_CREATOR_ROLES, Principal, Task, TaskStatus
from ..core.exceptions import (
    CategoryNotFoundException,
    TaskNotFoundException,
    TaskNotOpenException,
    UnauthorizedAccessException,
)
from ..core.interfaces import ITaskRepository
from .category_service import CategoryService
from .participation_coordinator import ParticipationCoordinator

logger = structlog.get_logger()

# Fields a creator may change while the task is OPEN
EDITABLE_FIELDS = frozenset(
    {"title", "description", "location", "category_id", "scheduled_at", "max_participants"}
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_aware(scheduled_at: datetime) -> None:
    if scheduled_at.tzinfo is None:
        raise ValueError("scheduled_at must be timezone-aware")


def _ensure_can_manage(task: Task, principal: Principal, operation: str) -> None:
    if task.creator_id != principal.external_id and not principal.is_admin:
        logger.warning(
            "unauthorized_task_operation",
            task_id=task.task_id,
            principal_id=principal.external_id,
            operation=operation,
        )
        raise UnauthorizedAccessException(operation)


class TaskLifecycleManager:
    """
    Task Lifecycle Manager

    Orchestrates task business operations:
    - create / edit tasks
    - status transitions with creator-or-admin authorization
    - past-due and capacity read models
    """

    def __init__(
        self,
        repository: ITaskRepository,
        coordinator: ParticipationCoordinator,
        categories: CategoryService | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize Task Lifecycle Manager

        Args:
            repository: Task repository
            coordinator: Participation coordinator (participant counts)
            categories: Category service; without it tasks cannot carry a category
            clock: Returns the current time (defaults to UTC now)
        """
        self.repository = repository
        self.coordinator = coordinator
        self.categories = categories
        self._clock = clock or _utcnow

    async def _require_category(self, category_id: str) -> None:
        if self.categories is None:
            raise CategoryNotFoundException(category_id)
        await self.categories.require_assignable(category_id)

    # ========== Create / Edit ==========

    async def create_task(
        self,
        principal: Principal,
        title: str,
        description: str,
        scheduled_at: datetime,
        max_participants: int = 1,
        location: str | None = None,
        category_id: str | None = None,
    ) -> Task:
        """
        Create a new OPEN task owned by the principal

        Raises:
            UnauthorizedAccessException: Principal may not post tasks
            CategoryNotFoundException: Unknown category
            CategoryInactiveException: Category was deactivated
            ValueError: Invalid task data
        """
        if not principal.has_any_role(*TASK_CREATOR_ROLES):
            raise UnauthorizedAccessException("create_task")
        _require_aware(scheduled_at)
        if category_id is not None:
            await self._require_category(category_id)

        now = self._clock()
        task = Task(
            task_id=Task.new_id(),
            creator_id=principal.external_id,
            title=title,
            description=description,
            scheduled_at=scheduled_at,
            max_participants=max_participants,
            location=location,
            category_id=category_id,
            created_at=now,
            updated_at=now,
        )
        await self.repository.save(task)

        logger.info(
            "task_created",
            task_id=task.task_id,
            creator_id=task.creator_id,
            max_participants=task.max_participants,
            scheduled_at=task.scheduled_at.isoformat(),
        )
        return task

    async def update_task(self, task_id: str, principal: Principal, **changes) -> Task:
        """
        Edit an OPEN task

        Args:
            task_id: Task ID
            principal: Caller; must be the creator or an ADMIN
            **changes: Any of EDITABLE_FIELDS; None values are ignored

        Raises:
            TaskNotFoundException: Task does not exist
            UnauthorizedAccessException: Caller is neither creator nor ADMIN
            TaskNotOpenException: Task is no longer OPEN
            CategoryNotFoundException: Unknown category
            CategoryInactiveException: Category was deactivated
            ValueError: Unknown field, invalid value, or capacity below the
                current number of active participants
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {sorted(unknown)}")
        changes = {k: v for k, v in changes.items() if v is not None}
        if "scheduled_at" in changes:
            _require_aware(changes["scheduled_at"])
        if "category_id" in changes:
            await self._require_category(changes["category_id"])

        async with self.repository.lock_task(task_id) as scope:
            task = scope.task
            if task is None:
                raise TaskNotFoundException(task_id)
            _ensure_can_manage(task, principal, "update_task")
            if not task.is_open():
                raise TaskNotOpenException(task_id, task.status.value)

            new_max = changes.get("max_participants")
            if new_max is not None and new_max < scope.active_count:
                raise ValueError(
                    f"max_participants cannot be lower than the {scope.active_count} "
                    "active participants"
                )

            updated = replace(task, updated_at=self._clock(), **changes)
            await scope.save_task(updated)

        logger.info(
            "task_updated",
            task_id=task_id,
            principal_id=principal.external_id,
            fields=sorted(changes),
        )
        return updated

    # ========== State Machine ==========

    async def transition(
        self,
        task_id: str,
        principal: Principal,
        new_status: TaskStatus,
    ) -> Task:
        """
        Move a task to a new status

        Cancelling leaves existing participations untouched; once the task is
        terminal they are frozen.

        Raises:
            TaskNotFoundException: Task does not exist
            UnauthorizedAccessException: Caller is neither creator nor ADMIN
            InvalidStatusTransitionException: Move not allowed
        """
        async with self.repository.lock_task(task_id) as scope:
            task = scope.task
            if task is None:
                raise TaskNotFoundException(task_id)
            _ensure_can_manage(task, principal, "change_task_status")

            old_status = task.status
            task.transition_to(new_status, at=self._clock())
            await scope.save_task(task)
            active_count = scope.active_count

        logger.info(
            "task_status_changed",
            task_id=task_id,
            principal_id=principal.external_id,
            from_status=old_status.value,
            to_status=new_status.value,
            active_count=active_count,
        )
        return task

    # ========== Queries ==========

    async def get_task(self, task_id: str) -> Task:
        task = await self.repository.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundException(task_id)
        return task

    def is_past_due(self, task: Task, now: datetime | None = None) -> bool:
        """OPEN task whose scheduled start has passed. Never mutates the task."""
        return task.is_past_due(now or self._clock())

    async def available_slots(self, task_id: str) -> int:
        task = await self.get_task(task_id)
        count = await self.coordinator.participant_count(task_id)
        return task.available_slots(count)

    async def list_open_tasks(self, limit: int = 50, offset: int = 0) -> list[Task]:
        return await self.repository.find_open_tasks(limit=limit, offset=offset)

    async def list_tasks_by_creator(
        self, creator_id: str, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        return await self.repository.find_by_creator(creator_id, limit=limit, offset=offset)

    async def list_tasks_by_status(
        self, status: TaskStatus, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        return await self.repository.find_by_status(status, limit=limit, offset=offset)

    async def find_past_due_tasks(
        self,
        now: datetime | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """OPEN tasks whose scheduled time has passed, for operator attention"""
        now = now or self._clock()
        open_tasks = await self.repository.find_by_status(TaskStatus.OPEN, limit=limit)
        return [t for t in open_tasks if t.is_past_due(now)]
