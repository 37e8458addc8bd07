"""SQL Implementation of ITaskRepository

Persistent task storage on PostgreSQL (asyncpg) or SQLite (aiosqlite).
The active participant count is never stored: lock_task reads it inside the
same transaction that holds the task row lock, so concurrent joins on one
task are decided one after another against a fresh count.

SQLite has no row locks (FOR UPDATE is dropped from the statement), so on
every dialect other than PostgreSQL lock_task is also serialised through a
process-local TaskLockRegistry. That makes SQLite safe for a single process
only.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, nullcontext

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ....core.entities import Participation, ParticipationStatus, Task, TaskStatus
from ....core.exceptions import AlreadyParticipatingException, StorageUnavailableException
from ....core.interfaces import ITaskRepository, TaskScope
from ...locks import TaskLockRegistry
from .database import as_utc as _tz
from .models import ParticipationModel, TaskModel

logger = structlog.get_logger()


# ---- Mapping -----------------------------------------------------------------


def _model_to_task(row: TaskModel) -> Task:
    return Task(
        task_id=row.task_id,
        creator_id=row.creator_id,
        title=row.title,
        description=row.description or "",
        location=row.location,
        category_id=row.category_id,
        scheduled_at=_tz(row.scheduled_at),
        max_participants=row.max_participants,
        status=TaskStatus(row.status),
        created_at=_tz(row.created_at),
        updated_at=_tz(row.updated_at),
        completed_at=_tz(row.completed_at),
        cancelled_at=_tz(row.cancelled_at),
    )


def _apply_task(row: TaskModel, task: Task) -> None:
    """Copy every mutable Task field onto an ORM row."""
    row.creator_id = task.creator_id
    row.title = task.title
    row.description = task.description
    row.location = task.location
    row.category_id = task.category_id
    row.scheduled_at = _tz(task.scheduled_at)
    row.max_participants = task.max_participants
    row.status = task.status.value
    row.created_at = _tz(task.created_at)
    row.updated_at = _tz(task.updated_at)
    row.completed_at = _tz(task.completed_at)
    row.cancelled_at = _tz(task.cancelled_at)


def _model_to_participation(row: ParticipationModel) -> Participation:
    return Participation(
        participation_id=row.participation_id,
        task_id=row.task_id,
        participant_id=row.participant_id,
        status=ParticipationStatus(row.status),
        notes=row.notes,
        joined_at=_tz(row.joined_at),
        left_at=_tz(row.left_at),
    )


def _apply_participation(row: ParticipationModel, p: Participation) -> None:
    row.task_id = p.task_id
    row.participant_id = p.participant_id
    row.status = p.status.value
    row.notes = p.notes
    row.joined_at = _tz(p.joined_at)
    row.left_at = _tz(p.left_at)


async def _upsert_task(session: AsyncSession, task: Task) -> None:
    row = await session.get(TaskModel, task.task_id)
    if row is None:
        row = TaskModel(task_id=task.task_id)
        session.add(row)
    _apply_task(row, task)


async def _upsert_participation(session: AsyncSession, p: Participation) -> None:
    row = await session.get(ParticipationModel, p.participation_id)
    if row is None:
        row = ParticipationModel(participation_id=p.participation_id)
        session.add(row)
    _apply_participation(row, p)


async def _count_active(session: AsyncSession, task_id: str) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(ParticipationModel)
        .where(
            ParticipationModel.task_id == task_id,
            ParticipationModel.status == ParticipationStatus.ACTIVE.value,
        )
    )
    return result.scalar() or 0


# =============================================================================
# Locked scope
# =============================================================================


class SqlTaskScope(TaskScope):
    """TaskScope bound to one open transaction holding the task row lock"""

    def __init__(self, session: AsyncSession, task: Task | None, active_count: int) -> None:
        self._session = session
        self.task = task
        self.active_count = active_count

    async def find_active_participation(self, participant_id: str) -> Participation | None:
        if self.task is None:
            return None
        result = await self._session.execute(
            select(ParticipationModel)
            .where(
                ParticipationModel.task_id == self.task.task_id,
                ParticipationModel.participant_id == participant_id,
                ParticipationModel.status == ParticipationStatus.ACTIVE.value,
            )
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _model_to_participation(row) if row else None

    async def add_participation(self, participation: Participation) -> None:
        row = ParticipationModel(participation_id=participation.participation_id)
        _apply_participation(row, participation)
        self._session.add(row)

    async def save_participation(self, participation: Participation) -> None:
        await _upsert_participation(self._session, participation)

    async def save_task(self, task: Task) -> None:
        await _upsert_task(self._session, task)


# =============================================================================
# Repository
# =============================================================================


class SqlTaskRepository(ITaskRepository):
    """
    SQL-backed TaskRepository.

    - Task / Participation data → relational tables (durable)
    - Join / leave / transition → one transaction with SELECT ... FOR UPDATE
                                  (plus a process-local lock off PostgreSQL)
    - Duplicate ACTIVE rows     → rejected by a partial unique index
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lock_timeout_seconds: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._lock_timeout_seconds = lock_timeout_seconds
        bind = session_factory.kw.get("bind")
        self._local_locks: TaskLockRegistry | None = None
        if bind is None or bind.dialect.name != "postgresql":
            self._local_locks = TaskLockRegistry()

    async def _apply_lock_timeout(self, session: AsyncSession) -> None:
        if not self._lock_timeout_seconds:
            return
        connection = await session.connection()
        if connection.dialect.name == "postgresql":
            ms = int(self._lock_timeout_seconds * 1000)
            await session.execute(text(f"SET LOCAL lock_timeout = '{ms}ms'"))

    # =========================================================================
    # Task CRUD
    # =========================================================================

    async def save(self, task: Task) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await _upsert_task(session, task)
        except DBAPIError as e:
            logger.error("task_save_failed", task_id=task.task_id, error=str(e))
            raise StorageUnavailableException("Task storage is unavailable") from e

    async def find_by_id(self, task_id: str) -> Task | None:
        async with self._session_factory() as session:
            row = await session.get(TaskModel, task_id)
            return _model_to_task(row) if row else None

    async def find_open_tasks(self, limit: int = 50, offset: int = 0) -> list[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.status == TaskStatus.OPEN.value)
                .order_by(TaskModel.scheduled_at.asc())
                .limit(limit)
                .offset(offset)
            )
            return [_model_to_task(r) for r in result.scalars().all()]

    async def find_by_creator(
        self, creator_id: str, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.creator_id == creator_id)
                .order_by(TaskModel.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [_model_to_task(r) for r in result.scalars().all()]

    async def find_by_status(
        self, status: TaskStatus, limit: int = 50, offset: int = 0
    ) -> list[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.status == status.value)
                .order_by(TaskModel.scheduled_at.asc())
                .limit(limit)
                .offset(offset)
            )
            return [_model_to_task(r) for r in result.scalars().all()]

    async def count_by_category(self, category_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(TaskModel)
                .where(TaskModel.category_id == category_id)
            )
            return result.scalar() or 0

    # =========================================================================
    # Participation Reads
    # =========================================================================

    async def find_participation_by_user_and_task(
        self,
        task_id: str,
        participant_id: str,
        active_only: bool = True,
    ) -> Participation | None:
        async with self._session_factory() as session:
            stmt = select(ParticipationModel).where(
                ParticipationModel.task_id == task_id,
                ParticipationModel.participant_id == participant_id,
            )
            if active_only:
                stmt = stmt.where(ParticipationModel.status == ParticipationStatus.ACTIVE.value)
            stmt = stmt.order_by(ParticipationModel.joined_at.desc()).limit(1)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            return _model_to_participation(row) if row else None

    async def find_participations_by_task(
        self,
        task_id: str,
        status: ParticipationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Participation]:
        async with self._session_factory() as session:
            stmt = select(ParticipationModel).where(ParticipationModel.task_id == task_id)
            if status:
                stmt = stmt.where(ParticipationModel.status == status.value)
            stmt = stmt.order_by(ParticipationModel.joined_at.asc()).limit(limit).offset(offset)
            result = await session.execute(stmt)
            return [_model_to_participation(r) for r in result.scalars().all()]

    async def find_participations_by_user(
        self,
        participant_id: str,
        limit: int = 50,
    ) -> list[Participation]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ParticipationModel)
                .where(ParticipationModel.participant_id == participant_id)
                .order_by(ParticipationModel.joined_at.desc())
                .limit(limit)
            )
            return [_model_to_participation(r) for r in result.scalars().all()]

    async def count_active_participations(self, task_id: str) -> int:
        async with self._session_factory() as session:
            return await _count_active(session, task_id)

    async def count_participations_by_user(
        self, participant_id: str
    ) -> dict[ParticipationStatus, int]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ParticipationModel.status, func.count())
                .where(ParticipationModel.participant_id == participant_id)
                .group_by(ParticipationModel.status)
            )
            counts = dict.fromkeys(ParticipationStatus, 0)
            for status, count in result.all():
                counts[ParticipationStatus(status)] = count
            return counts

    async def rank_participants_by_active(self, limit: int = 10) -> list[tuple[str, int]]:
        active = func.count().label("active")
        async with self._session_factory() as session:
            result = await session.execute(
                select(ParticipationModel.participant_id, active)
                .where(ParticipationModel.status == ParticipationStatus.ACTIVE.value)
                .group_by(ParticipationModel.participant_id)
                .order_by(active.desc(), ParticipationModel.participant_id.asc())
                .limit(limit)
            )
            return [(participant_id, count) for participant_id, count in result.all()]

    # =========================================================================
    # Atomic Operations (row lock + transaction)
    # =========================================================================

    @asynccontextmanager
    async def lock_task(self, task_id: str) -> AsyncIterator[TaskScope]:
        """
        Lock the task row and yield a scope over it.

        Writes made through the scope commit together when the block exits
        cleanly and roll back when it raises.

        Raises:
            AlreadyParticipatingException: If the commit trips the active
                participation unique index
            StorageUnavailableException: If the lock or the database fails
        """
        guard = (
            self._local_locks.hold(task_id, timeout=self._lock_timeout_seconds)
            if self._local_locks is not None
            else nullcontext()
        )
        async with guard:
            async with self._locked_scope(task_id) as scope:
                yield scope

    @asynccontextmanager
    async def _locked_scope(self, task_id: str) -> AsyncIterator[TaskScope]:
        try:
            async with self._session_factory() as session, session.begin():
                await self._apply_lock_timeout(session)
                result = await session.execute(
                    select(TaskModel).where(TaskModel.task_id == task_id).with_for_update()
                )
                row = result.scalar_one_or_none()
                task = _model_to_task(row) if row else None
                active_count = await _count_active(session, task_id) if row else 0
                yield SqlTaskScope(session, task, active_count)
        except IntegrityError as e:
            logger.warning("active_participation_conflict", task_id=task_id)
            raise AlreadyParticipatingException(task_id) from e
        except DBAPIError as e:
            logger.error("task_lock_failed", task_id=task_id, error=str(e))
            raise StorageUnavailableException(f"Could not lock task {task_id}") from e
