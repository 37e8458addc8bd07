"""Domain Entities

Pure business objects without framework dependencies.
These represent the core business concepts of MicroVolunteer.
"""

from .category import Category
from .principal import TASK_CREATOR_ROLES, Principal, Role
from .task import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    Participation,
    ParticipationStatistics,
    ParticipationStatus,
    Task,
    TaskStatus,
    VolunteerRanking,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "TASK_CREATOR_ROLES",
    "TERMINAL_STATUSES",
    "Category",
    "Participation",
    "ParticipationStatistics",
    "ParticipationStatus",
    "Principal",
    "Role",
    "Task",
    "TaskStatus",
    "VolunteerRanking",
]
