"""Unit Tests for CapacityGate"""

import pytest

from microvolunteer.core.entities import TaskStatus
from microvolunteer.services import CapacityGate
from tests.factories import make_task


@pytest.fixture
def gate() -> CapacityGate:
    return CapacityGate()


class TestCapacityGate:
    @pytest.mark.parametrize(
        "max_participants, active, expected",
        [(1, 0, True), (2, 1, True), (2, 2, False), (2, 5, False)],
    )
    def test_can_join_open_task(self, gate, max_participants, active, expected):
        task = make_task(max_participants=max_participants)
        assert gate.can_join(task, active) is expected

    @pytest.mark.parametrize(
        "status", [TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED]
    )
    def test_non_open_task_never_joinable(self, gate, status):
        task = make_task(max_participants=5, status=status)
        assert gate.can_join(task, 0) is False

    def test_available_slots(self, gate):
        task = make_task(max_participants=3)
        assert gate.available_slots(task, 1) == 2
        assert gate.available_slots(task, 4) == 0
