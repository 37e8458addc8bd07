"""Participation Coordinator

Join and leave against a single task. Every check that guards a write runs
inside the repository's per-task critical section, against the active count
read in that same section.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from ..core.entities import (
    Participation,
    ParticipationStatistics,
    ParticipationStatus,
    Principal,
    VolunteerRanking,
)
from ..core.exceptions import (
    AlreadyParticipatingException,
    CannotParticipateOwnTaskException,
    ParticipationNotFoundException,
    TaskFullException,
    TaskNotFoundException,
    TaskNotOpenException,
)
from ..core.interfaces import ITaskRepository
from .capacity_gate import CapacityGate

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ParticipationCoordinator:
    """
    Participation Coordinator

    Orchestrates participation business operations:
    - join / leave with capacity, uniqueness and self-join rules
    - participant counts and per-principal history
    """

    def __init__(
        self,
        repository: ITaskRepository,
        capacity_gate: CapacityGate | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize Participation Coordinator

        Args:
            repository: Task repository
            capacity_gate: Capacity rule (created if not provided)
            clock: Returns the current time (defaults to UTC now)
        """
        self.repository = repository
        self.capacity_gate = capacity_gate or CapacityGate()
        self._clock = clock or _utcnow

    # ========== Mutations ==========

    async def join(
        self,
        task_id: str,
        principal: Principal,
        notes: str | None = None,
    ) -> Participation:
        """
        Join a task as an ACTIVE participant

        Raises:
            TaskNotFoundException: Task does not exist
            TaskNotOpenException: Task is not OPEN
            AlreadyParticipatingException: Principal already holds an ACTIVE participation
            CannotParticipateOwnTaskException: Principal created the task
            TaskFullException: No free places left
        """
        participant_id = principal.external_id

        async with self.repository.lock_task(task_id) as scope:
            task = scope.task
            if task is None:
                raise TaskNotFoundException(task_id)
            if not task.is_open():
                raise TaskNotOpenException(task_id, task.status.value)
            if await scope.find_active_participation(participant_id) is not None:
                raise AlreadyParticipatingException(task_id)
            if task.creator_id == participant_id:
                raise CannotParticipateOwnTaskException(task_id)
            if not self.capacity_gate.can_join(task, scope.active_count):
                logger.info(
                    "task_full",
                    task_id=task_id,
                    participant_id=participant_id,
                    max_participants=task.max_participants,
                )
                raise TaskFullException(task_id, task.max_participants)

            participation = Participation(
                participation_id=Participation.new_id(),
                task_id=task_id,
                participant_id=participant_id,
                notes=notes,
                joined_at=self._clock(),
            )
            await scope.add_participation(participation)
            active_count = scope.active_count + 1

        logger.info(
            "participant_joined_task",
            task_id=task_id,
            participant_id=participant_id,
            participation_id=participation.participation_id,
            active_count=active_count,
            max_participants=task.max_participants,
        )
        return participation

    async def leave(self, task_id: str, principal: Principal) -> Participation:
        """
        Withdraw the principal's ACTIVE participation

        Allowed while the task is OPEN or IN_PROGRESS; participations of
        COMPLETED and CANCELLED tasks are frozen.

        Raises:
            TaskNotFoundException: Task does not exist
            TaskNotOpenException: Task is terminal
            ParticipationNotFoundException: No ACTIVE participation to leave
        """
        participant_id = principal.external_id

        async with self.repository.lock_task(task_id) as scope:
            task = scope.task
            if task is None:
                raise TaskNotFoundException(task_id)
            if task.is_terminal():
                raise TaskNotOpenException(task_id, task.status.value)

            participation = await scope.find_active_participation(participant_id)
            if participation is None:
                raise ParticipationNotFoundException(task_id, participant_id)

            participation.leave(at=self._clock())
            await scope.save_participation(participation)

        logger.info(
            "participant_left_task",
            task_id=task_id,
            participant_id=participant_id,
            participation_id=participation.participation_id,
        )
        return participation

    # ========== Queries ==========

    async def participant_count(self, task_id: str) -> int:
        """Count ACTIVE participations on a task"""
        return await self.repository.count_active_participations(task_id)

    async def list_task_participants(
        self,
        task_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Participation]:
        """ACTIVE participations of a task in join order"""
        if await self.repository.find_by_id(task_id) is None:
            raise TaskNotFoundException(task_id)
        return await self.repository.find_participations_by_task(
            task_id,
            status=ParticipationStatus.ACTIVE,
            limit=limit,
            offset=offset,
        )

    async def list_participations(
        self,
        principal: Principal,
        limit: int = 50,
    ) -> list[Participation]:
        """Participation history of a principal, newest first"""
        return await self.repository.find_participations_by_user(
            principal.external_id, limit=limit
        )

    async def is_participating(self, task_id: str, principal: Principal) -> bool:
        """
        Whether the principal holds an ACTIVE participation on the task

        Raises:
            TaskNotFoundException: Task does not exist
        """
        if await self.repository.find_by_id(task_id) is None:
            raise TaskNotFoundException(task_id)
        participation = await self.repository.find_participation_by_user_and_task(
            task_id, principal.external_id, active_only=True
        )
        return participation is not None

    async def statistics(self, principal: Principal) -> ParticipationStatistics:
        counts = await self.repository.count_participations_by_user(principal.external_id)
        return ParticipationStatistics(
            active=counts.get(ParticipationStatus.ACTIVE, 0),
            left=counts.get(ParticipationStatus.LEFT, 0),
        )

    async def rankings(self, limit: int = 10) -> list[VolunteerRanking]:
        """Volunteers with the most ACTIVE participations, highest first"""
        ranked = await self.repository.rank_participants_by_active(limit=limit)
        return [
            VolunteerRanking(participant_id=participant_id, active_participations=count)
            for participant_id, count in ranked
        ]
