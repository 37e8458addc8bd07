"""Unit Tests for TaskLifecycleManager

Creation, editing, the status state machine and its authorization rules.
"""

from datetime import UTC, datetime, timedelta

import pytest

from microvolunteer.core.entities import ParticipationStatus, Principal, Role, TaskStatus
from microvolunteer.core.exceptions import (
    CannotParticipateOwnTaskException,
    CategoryInactiveException,
    CategoryNotFoundException,
    InvalidStatusTransitionException,
    TaskNotFoundException,
    TaskNotOpenException,
    UnauthorizedAccessException,
)
from tests.factories import NOW, make_category, make_task

TOMORROW = NOW + timedelta(days=1)


# ============================================================================
# create_task
# ============================================================================


class TestCreateTask:
    async def test_organizer_creates_open_task(self, lifecycle, repository, organizer):
        task = await lifecycle.create_task(
            organizer,
            title="Walk the dog",
            description="Twice around the park",
            scheduled_at=TOMORROW,
            max_participants=2,
            location="Park",
        )

        assert task.status == TaskStatus.OPEN
        assert task.creator_id == "organizer-1"
        assert task.created_at == NOW
        assert await repository.find_by_id(task.task_id) == task

    @pytest.mark.parametrize("role", [Role.AFFECTED_PERSON, Role.ADMIN])
    async def test_other_creator_roles(self, lifecycle, role):
        principal = Principal(external_id="p-1", roles=frozenset({role}))
        task = await lifecycle.create_task(principal, "Help", "", TOMORROW)
        assert task.max_participants == 1

    async def test_volunteer_cannot_create(self, lifecycle, volunteer_a):
        with pytest.raises(UnauthorizedAccessException):
            await lifecycle.create_task(volunteer_a, "Help", "", TOMORROW)

    async def test_invalid_data(self, lifecycle, organizer):
        with pytest.raises(ValueError, match="max_participants"):
            await lifecycle.create_task(organizer, "Help", "", TOMORROW, max_participants=0)
        with pytest.raises(ValueError, match="title"):
            await lifecycle.create_task(organizer, " ", "", TOMORROW)

    async def test_naive_schedule_rejected(self, lifecycle, organizer):
        with pytest.raises(ValueError, match="timezone"):
            await lifecycle.create_task(organizer, "Help", "", datetime(2026, 3, 2, 9, 0))

    async def test_filed_under_active_category(
        self, lifecycle, category_repository, organizer
    ):
        await category_repository.save(make_category())

        task = await lifecycle.create_task(
            organizer, "Help", "", TOMORROW, category_id="cat-001"
        )

        assert task.category_id == "cat-001"

    async def test_unknown_category(self, lifecycle, organizer):
        with pytest.raises(CategoryNotFoundException):
            await lifecycle.create_task(organizer, "Help", "", TOMORROW, category_id="nope")

    async def test_inactive_category(self, lifecycle, category_repository, organizer):
        await category_repository.save(make_category(active=False))

        with pytest.raises(CategoryInactiveException):
            await lifecycle.create_task(organizer, "Help", "", TOMORROW, category_id="cat-001")


# ============================================================================
# update_task
# ============================================================================


class TestUpdateTask:
    async def test_creator_edits_open_task(self, lifecycle, open_task, organizer):
        later = TOMORROW + timedelta(hours=3)

        task = await lifecycle.update_task(
            open_task.task_id, organizer, title="Big grocery run", scheduled_at=later
        )

        assert task.title == "Big grocery run"
        assert task.scheduled_at == later
        assert task.description == open_task.description
        assert (await lifecycle.get_task(open_task.task_id)).title == "Big grocery run"

    async def test_none_values_are_ignored(self, lifecycle, open_task, organizer):
        task = await lifecycle.update_task(open_task.task_id, organizer, title=None, location="Depot")
        assert task.title == open_task.title
        assert task.location == "Depot"

    async def test_move_to_category(self, lifecycle, category_repository, open_task, organizer):
        await category_repository.save(make_category())
        await category_repository.save(
            make_category(category_id="cat-old", name="Old", active=False)
        )

        task = await lifecycle.update_task(open_task.task_id, organizer, category_id="cat-001")
        assert task.category_id == "cat-001"

        with pytest.raises(CategoryInactiveException):
            await lifecycle.update_task(open_task.task_id, organizer, category_id="cat-old")
        with pytest.raises(CategoryNotFoundException):
            await lifecycle.update_task(open_task.task_id, organizer, category_id="missing")
        assert (await lifecycle.get_task(open_task.task_id)).category_id == "cat-001"

    async def test_admin_may_edit(self, lifecycle, open_task, admin):
        task = await lifecycle.update_task(open_task.task_id, admin, max_participants=5)
        assert task.max_participants == 5

    async def test_other_user_may_not_edit(self, lifecycle, open_task, volunteer_a):
        with pytest.raises(UnauthorizedAccessException):
            await lifecycle.update_task(open_task.task_id, volunteer_a, title="Mine now")

    async def test_only_open_tasks_editable(self, lifecycle, open_task, organizer):
        await lifecycle.transition(open_task.task_id, organizer, TaskStatus.IN_PROGRESS)
        with pytest.raises(TaskNotOpenException):
            await lifecycle.update_task(open_task.task_id, organizer, title="Too late")

    async def test_capacity_cannot_drop_below_active(
        self, lifecycle, coordinator, open_task, organizer, volunteer_a, volunteer_b
    ):
        await coordinator.join(open_task.task_id, volunteer_a)
        await coordinator.join(open_task.task_id, volunteer_b)

        with pytest.raises(ValueError, match="active participants"):
            await lifecycle.update_task(open_task.task_id, organizer, max_participants=1)
        assert (await lifecycle.get_task(open_task.task_id)).max_participants == 2

    async def test_unknown_field_rejected(self, lifecycle, open_task, organizer):
        with pytest.raises(ValueError, match="cannot be edited"):
            await lifecycle.update_task(open_task.task_id, organizer, status=TaskStatus.COMPLETED)

    async def test_unknown_task(self, lifecycle, organizer):
        with pytest.raises(TaskNotFoundException):
            await lifecycle.update_task("missing", organizer, title="x")


# ============================================================================
# transition
# ============================================================================


class TestTransition:
    async def test_full_lifecycle(self, lifecycle, open_task, organizer):
        task = await lifecycle.transition(open_task.task_id, organizer, TaskStatus.IN_PROGRESS)
        assert task.status == TaskStatus.IN_PROGRESS

        task = await lifecycle.transition(open_task.task_id, organizer, TaskStatus.COMPLETED)
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at == NOW

        stored = await lifecycle.get_task(open_task.task_id)
        assert stored.status == TaskStatus.COMPLETED

    async def test_open_to_completed_rejected(self, lifecycle, open_task, organizer):
        with pytest.raises(InvalidStatusTransitionException):
            await lifecycle.transition(open_task.task_id, organizer, TaskStatus.COMPLETED)
        assert (await lifecycle.get_task(open_task.task_id)).status == TaskStatus.OPEN

    @pytest.mark.parametrize("target", list(TaskStatus))
    async def test_nothing_leaves_cancelled(self, lifecycle, open_task, organizer, target):
        await lifecycle.transition(open_task.task_id, organizer, TaskStatus.CANCELLED)
        with pytest.raises(InvalidStatusTransitionException):
            await lifecycle.transition(open_task.task_id, organizer, target)

    async def test_non_creator_rejected(self, lifecycle, open_task, volunteer_a):
        with pytest.raises(UnauthorizedAccessException):
            await lifecycle.transition(open_task.task_id, volunteer_a, TaskStatus.CANCELLED)

    async def test_unknown_task(self, lifecycle, organizer):
        with pytest.raises(TaskNotFoundException):
            await lifecycle.transition("missing", organizer, TaskStatus.CANCELLED)

    async def test_cancellation_scenario(
        self, lifecycle, coordinator, open_task, organizer, admin, volunteer_a, volunteer_b
    ):
        """Creator cannot join; admin cancels; nobody can join afterwards"""
        await coordinator.join(open_task.task_id, volunteer_a)
        with pytest.raises(CannotParticipateOwnTaskException):
            await coordinator.join(open_task.task_id, organizer)

        task = await lifecycle.transition(open_task.task_id, admin, TaskStatus.CANCELLED)
        assert task.cancelled_at == NOW

        with pytest.raises(TaskNotOpenException):
            await coordinator.join(open_task.task_id, volunteer_b)

        # Participations are frozen, not mutated
        participants = await coordinator.list_task_participants(open_task.task_id)
        assert [p.status for p in participants] == [ParticipationStatus.ACTIVE]


# ============================================================================
# Queries
# ============================================================================


class TestQueries:
    async def test_get_task_unknown(self, lifecycle):
        with pytest.raises(TaskNotFoundException):
            await lifecycle.get_task("missing")

    async def test_available_slots(self, lifecycle, coordinator, open_task, volunteer_a):
        assert await lifecycle.available_slots(open_task.task_id) == 2
        await coordinator.join(open_task.task_id, volunteer_a)
        assert await lifecycle.available_slots(open_task.task_id) == 1

    async def test_is_past_due_uses_clock(self, lifecycle):
        assert lifecycle.is_past_due(make_task(scheduled_at=NOW - timedelta(hours=1)))
        assert not lifecycle.is_past_due(make_task())
        assert lifecycle.is_past_due(make_task(), now=TOMORROW + timedelta(seconds=1))

    async def test_find_past_due_tasks(self, lifecycle, repository):
        await repository.save(make_task(task_id="late", scheduled_at=NOW - timedelta(hours=2)))
        await repository.save(make_task(task_id="soon"))
        await repository.save(
            make_task(
                task_id="late-but-running",
                scheduled_at=NOW - timedelta(hours=2),
                status=TaskStatus.IN_PROGRESS,
            )
        )

        past_due = await lifecycle.find_past_due_tasks()

        assert [t.task_id for t in past_due] == ["late"]
        # Read-only: still OPEN
        assert (await lifecycle.get_task("late")).status == TaskStatus.OPEN

    async def test_list_open_and_by_creator(self, lifecycle, repository):
        await repository.save(make_task(task_id="a", scheduled_at=NOW + timedelta(days=3)))
        await repository.save(make_task(task_id="b", scheduled_at=NOW + timedelta(days=1)))
        await repository.save(
            make_task(task_id="c", creator_id="someone-else", status=TaskStatus.CANCELLED)
        )

        open_tasks = await lifecycle.list_open_tasks()
        mine = await lifecycle.list_tasks_by_creator("organizer-1")

        assert [t.task_id for t in open_tasks] == ["b", "a"]
        assert {t.task_id for t in mine} == {"a", "b"}

    async def test_list_by_creator_pages(self, lifecycle, repository):
        for n in range(4):
            await repository.save(make_task(task_id=f"t-{n}", created_at=NOW + timedelta(hours=n)))

        page = await lifecycle.list_tasks_by_creator("organizer-1", limit=2, offset=1)

        assert [t.task_id for t in page] == ["t-2", "t-1"]

    async def test_list_by_status(self, lifecycle, repository):
        await repository.save(make_task(task_id="open"))
        await repository.save(make_task(task_id="s-1", status=TaskStatus.IN_PROGRESS))
        await repository.save(
            make_task(
                task_id="s-2",
                status=TaskStatus.IN_PROGRESS,
                scheduled_at=NOW + timedelta(days=2),
            )
        )

        started = await lifecycle.list_tasks_by_status(TaskStatus.IN_PROGRESS)
        second = await lifecycle.list_tasks_by_status(TaskStatus.IN_PROGRESS, limit=1, offset=1)

        assert [t.task_id for t in started] == ["s-1", "s-2"]
        assert [t.task_id for t in second] == ["s-2"]

    async def test_list_open_tasks_pagination(self, lifecycle, repository):
        for n in range(5):
            await repository.save(
                make_task(task_id=f"t-{n}", scheduled_at=datetime(2026, 4, n + 1, tzinfo=UTC))
            )

        page = await lifecycle.list_open_tasks(limit=2, offset=2)

        assert [t.task_id for t in page] == ["t-2", "t-3"]
