"""Request/Response Models

Pydantic models for the HTTP layer and the entity → response converters.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.entities import (
    Category,
    Participation,
    ParticipationStatistics,
    Task,
    TaskStatus,
    VolunteerRanking,
)

# ========== Requests ==========


class TaskCreateRequest(BaseModel):
    """Request to create a task"""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=10000)
    location: str | None = Field(None, max_length=500)
    category_id: str | None = Field(None, description="Active category to file the task under")
    scheduled_at: datetime = Field(..., description="Scheduled start (timezone-aware)")
    max_participants: int = Field(default=1, ge=1, le=10000)


class TaskUpdateRequest(BaseModel):
    """Partial task edit; omitted fields stay unchanged"""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    location: str | None = Field(None, max_length=500)
    category_id: str | None = None
    scheduled_at: datetime | None = None
    max_participants: int | None = Field(None, ge=1, le=10000)


class TaskStatusRequest(BaseModel):
    """Request to move a task to a new status"""

    status: TaskStatus


class CategoryCreateRequest(BaseModel):
    """Request to create a category"""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)


class CategoryUpdateRequest(BaseModel):
    """Partial category edit; omitted fields stay unchanged"""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)


class JoinRequest(BaseModel):
    """Request to join a task"""

    notes: str | None = Field(None, max_length=1000, description="Optional note to the organizer")


# ========== Responses ==========


class TaskResponse(BaseModel):
    """Task response model"""

    task_id: str
    creator_id: str
    title: str
    description: str
    location: str | None = None
    category_id: str | None = None
    scheduled_at: str
    max_participants: int
    status: str
    created_at: str
    updated_at: str
    completed_at: str | None = None
    cancelled_at: str | None = None
    is_past_due: bool = False
    active_participants_count: int | None = None
    available_slots: int | None = None


class TaskListResponse(BaseModel):
    """Response containing list of tasks"""

    tasks: list[TaskResponse]
    total: int
    has_more: bool = False


class ParticipationResponse(BaseModel):
    """Participation response model"""

    participation_id: str
    task_id: str
    participant_id: str
    status: str
    notes: str | None = None
    joined_at: str
    left_at: str | None = None


class ParticipationListResponse(BaseModel):
    """List of participations"""

    participations: list[ParticipationResponse]
    total: int


class ParticipationStatisticsResponse(BaseModel):
    """Participation counts for the caller"""

    active: int
    left: int
    total: int


class ParticipationStatusResponse(BaseModel):
    """Whether the caller currently takes part in a task"""

    task_id: str
    participating: bool


class VolunteerRankingResponse(BaseModel):
    participant_id: str
    active_participations: int


class VolunteerRankingListResponse(BaseModel):
    """Volunteer leaderboard"""

    rankings: list[VolunteerRankingResponse]
    total: int


class CategoryResponse(BaseModel):
    """Category response model"""

    category_id: str
    name: str
    description: str
    active: bool
    created_at: str
    updated_at: str
    task_count: int | None = None


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]
    total: int


# ========== Converters ==========


def task_to_response(
    task: Task,
    is_past_due: bool = False,
    active_count: int | None = None,
) -> TaskResponse:
    """Convert Task entity to response model."""
    return TaskResponse(
        **task.to_dict(),
        is_past_due=is_past_due,
        active_participants_count=active_count,
        available_slots=task.available_slots(active_count) if active_count is not None else None,
    )


def participation_to_response(p: Participation) -> ParticipationResponse:
    """Convert Participation entity to response model."""
    return ParticipationResponse(**p.to_dict())


def statistics_to_response(stats: ParticipationStatistics) -> ParticipationStatisticsResponse:
    return ParticipationStatisticsResponse(active=stats.active, left=stats.left, total=stats.total)


def ranking_to_response(ranking: VolunteerRanking) -> VolunteerRankingResponse:
    return VolunteerRankingResponse(
        participant_id=ranking.participant_id,
        active_participations=ranking.active_participations,
    )


def category_to_response(category: Category, task_count: int | None = None) -> CategoryResponse:
    """Convert Category entity to response model."""
    return CategoryResponse(**category.to_dict(), task_count=task_count)
