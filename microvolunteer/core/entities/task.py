"""Task Domain Entity

Pure business logic for Task and Participation, independent of infrastructure.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from ..exceptions import InvalidStatusTransitionException


def _now() -> datetime:
    return datetime.now(UTC)


class TaskStatus(str, Enum):
    """Task status"""

    OPEN = "open"  # Accepting volunteers
    IN_PROGRESS = "in_progress"  # Work has started
    COMPLETED = "completed"  # Done (terminal)
    CANCELLED = "cancelled"  # Called off (terminal)


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.OPEN: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


class ParticipationStatus(str, Enum):
    """Participation status"""

    ACTIVE = "active"  # Counts toward capacity
    LEFT = "left"  # Withdrawn, kept for history


@dataclass
class Task:
    """
    Task Domain Entity

    A piece of volunteer work posted by a creator. Volunteers join it through
    Participations; at most ``max_participants`` of them may be ACTIVE at once.
    """

    task_id: str
    creator_id: str
    title: str
    description: str
    scheduled_at: datetime
    max_participants: int = 1
    location: str | None = None
    category_id: str | None = None

    status: TaskStatus = TaskStatus.OPEN

    # Timestamps
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def __post_init__(self):
        """Validate invariants"""
        if not self.task_id:
            raise ValueError("task_id cannot be empty")
        if not self.title or not self.title.strip():
            raise ValueError("title cannot be empty")
        if not self.creator_id:
            raise ValueError("creator_id cannot be empty")
        if self.max_participants < 1:
            raise ValueError("max_participants must be at least 1")

    @staticmethod
    def new_id() -> str:
        return str(uuid4())

    # ========== Status Transitions ==========

    def can_transition_to(self, new_status: TaskStatus) -> bool:
        """Check if the state machine allows moving to new_status"""
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, new_status: TaskStatus, at: datetime | None = None) -> None:
        """
        Move the task to a new status

        Args:
            new_status: Target status
            at: Transition time (defaults to now)

        Raises:
            InvalidStatusTransitionException: If the move is not allowed
        """
        if not self.can_transition_to(new_status):
            raise InvalidStatusTransitionException(self.status.value, new_status.value)

        at = at or _now()
        self.status = new_status
        self.updated_at = at
        if new_status == TaskStatus.COMPLETED:
            self.completed_at = at
        elif new_status == TaskStatus.CANCELLED:
            self.cancelled_at = at

    # ========== Queries ==========

    def is_open(self) -> bool:
        """Check if task is open for joining"""
        return self.status == TaskStatus.OPEN

    def is_terminal(self) -> bool:
        """Check if task is completed or cancelled"""
        return self.status in TERMINAL_STATUSES

    def is_past_due(self, now: datetime | None = None) -> bool:
        """Scheduled start has passed while the task is still OPEN"""
        now = now or _now()
        return self.status == TaskStatus.OPEN and now > self.scheduled_at

    def available_slots(self, active_count: int) -> int:
        """Free places given the current active participant count, never negative"""
        return max(0, self.max_participants - active_count)

    # ========== Serialization ==========

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            "task_id": self.task_id,
            "creator_id": self.creator_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "category_id": self.category_id,
            "scheduled_at": self.scheduled_at.isoformat(),
            "max_participants": self.max_participants,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }


@dataclass
class Participation:
    """
    Participation Domain Entity

    One volunteer's membership in one task. Leaving flips the status to LEFT;
    the record itself is kept so statistics can be computed later.
    """

    participation_id: str
    task_id: str
    participant_id: str
    status: ParticipationStatus = ParticipationStatus.ACTIVE
    notes: str | None = None
    joined_at: datetime = field(default_factory=_now)
    left_at: datetime | None = None

    def __post_init__(self):
        if not self.participation_id:
            raise ValueError("participation_id cannot be empty")
        if not self.task_id:
            raise ValueError("task_id cannot be empty")
        if not self.participant_id:
            raise ValueError("participant_id cannot be empty")

    @staticmethod
    def new_id() -> str:
        return str(uuid4())

    def is_active(self) -> bool:
        return self.status == ParticipationStatus.ACTIVE

    def leave(self, at: datetime | None = None) -> None:
        """
        Withdraw from the task

        Raises:
            ValueError: If the participation is not ACTIVE
        """
        if self.status != ParticipationStatus.ACTIVE:
            raise ValueError(f"Cannot leave in status: {self.status.value}")
        self.status = ParticipationStatus.LEFT
        self.left_at = at or _now()

    def to_dict(self) -> dict:
        return {
            "participation_id": self.participation_id,
            "task_id": self.task_id,
            "participant_id": self.participant_id,
            "status": self.status.value,
            "notes": self.notes,
            "joined_at": self.joined_at.isoformat(),
            "left_at": self.left_at.isoformat() if self.left_at else None,
        }


@dataclass(frozen=True)
class ParticipationStatistics:
    """Participation counts for one principal"""

    active: int = 0
    left: int = 0

    @property
    def total(self) -> int:
        return self.active + self.left


@dataclass(frozen=True)
class VolunteerRanking:
    """One row of the volunteer leaderboard"""

    participant_id: str
    active_participations: int
