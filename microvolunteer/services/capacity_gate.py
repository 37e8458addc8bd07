"""Capacity Gate

Decides whether one more volunteer fits into a task. Pure: callers pass the
active count they read inside the task's critical section.
"""

from ..core.entities import Task


class CapacityGate:
    """Capacity rule for joins"""

    def available_slots(self, task: Task, active_count: int) -> int:
        """Free places left, never negative"""
        return task.available_slots(active_count)

    def can_join(self, task: Task, active_count: int) -> bool:
        """True iff the task is OPEN and has at least one free place"""
        return task.is_open() and self.available_slots(task, active_count) > 0
