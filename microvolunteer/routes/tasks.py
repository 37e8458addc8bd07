"""Task API Routes

Route → TaskLifecycleManager / ParticipationCoordinator → Repository
"""

from fastapi import APIRouter, HTTPException, Query, status

from ..core.entities import TaskStatus
from .dependencies import CoordinatorDep, LifecycleDep, PrincipalDep
from .schemas import (
    JoinRequest,
    ParticipationListResponse,
    ParticipationResponse,
    ParticipationStatusResponse,
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskStatusRequest,
    TaskUpdateRequest,
    participation_to_response,
    task_to_response,
)

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


# ========== Public Endpoints ==========


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    lifecycle: LifecycleDep,
    creator_id: str | None = Query(None, description="Only tasks posted by this creator"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """
    List tasks

    Without filters: OPEN tasks, soonest first. With creator_id: every task of
    that creator, newest first.
    """
    if creator_id:
        tasks = await lifecycle.list_tasks_by_creator(
            creator_id, limit=limit + 1, offset=offset
        )
    else:
        # Get one extra to check has_more
        tasks = await lifecycle.list_open_tasks(limit=limit + 1, offset=offset)

    has_more = len(tasks) > limit
    if has_more:
        tasks = tasks[:limit]

    return TaskListResponse(
        tasks=[task_to_response(t, is_past_due=lifecycle.is_past_due(t)) for t in tasks],
        total=len(tasks),
        has_more=has_more,
    )


@router.get("/past-due", response_model=TaskListResponse)
async def list_past_due_tasks(
    lifecycle: LifecycleDep,
    limit: int = Query(100, ge=1, le=500),
):
    """OPEN tasks whose scheduled start has already passed"""
    tasks = await lifecycle.find_past_due_tasks(limit=limit)
    return TaskListResponse(
        tasks=[task_to_response(t, is_past_due=True) for t in tasks],
        total=len(tasks),
    )


@router.get("/status/{task_status}", response_model=TaskListResponse)
async def list_tasks_by_status(
    task_status: TaskStatus,
    lifecycle: LifecycleDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Tasks in one lifecycle status, soonest first"""
    tasks = await lifecycle.list_tasks_by_status(task_status, limit=limit + 1, offset=offset)

    has_more = len(tasks) > limit
    if has_more:
        tasks = tasks[:limit]

    return TaskListResponse(
        tasks=[task_to_response(t, is_past_due=lifecycle.is_past_due(t)) for t in tasks],
        total=len(tasks),
        has_more=has_more,
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    lifecycle: LifecycleDep,
    coordinator: CoordinatorDep,
):
    """Get task details, including free places"""
    task = await lifecycle.get_task(task_id)
    active_count = await coordinator.participant_count(task_id)
    return task_to_response(
        task,
        is_past_due=lifecycle.is_past_due(task),
        active_count=active_count,
    )


# ========== Authenticated Endpoints ==========


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: TaskCreateRequest,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
):
    """Post a new task (ORGANIZER, AFFECTED_PERSON or ADMIN)"""
    try:
        task = await lifecycle.create_task(
            principal,
            title=request.title,
            description=request.description,
            scheduled_at=request.scheduled_at,
            max_participants=request.max_participants,
            location=request.location,
            category_id=request.category_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return task_to_response(task, active_count=0)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
):
    """Edit an OPEN task (creator or ADMIN)"""
    try:
        task = await lifecycle.update_task(
            task_id, principal, **request.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return task_to_response(task, is_past_due=lifecycle.is_past_due(task))


@router.post("/{task_id}/status", response_model=TaskResponse)
async def change_task_status(
    task_id: str,
    request: TaskStatusRequest,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
):
    """Move a task along its lifecycle (creator or ADMIN)"""
    task = await lifecycle.transition(task_id, principal, request.status)
    return task_to_response(task)


@router.post(
    "/{task_id}/join",
    response_model=ParticipationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_task(
    task_id: str,
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
    request: JoinRequest | None = None,
):
    """Join an OPEN task as a volunteer"""
    participation = await coordinator.join(
        task_id, principal, notes=request.notes if request else None
    )
    return participation_to_response(participation)


@router.post("/{task_id}/leave", response_model=ParticipationResponse)
async def leave_task(
    task_id: str,
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
):
    """Withdraw from a task"""
    participation = await coordinator.leave(task_id, principal)
    return participation_to_response(participation)


@router.get("/{task_id}/participations", response_model=ParticipationListResponse)
async def list_task_participations(
    task_id: str,
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """ACTIVE participants of a task, in join order"""
    participations = await coordinator.list_task_participants(task_id, limit=limit, offset=offset)
    return ParticipationListResponse(
        participations=[participation_to_response(p) for p in participations],
        total=len(participations),
    )


@router.get("/{task_id}/participation-status", response_model=ParticipationStatusResponse)
async def participation_status(
    task_id: str,
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
):
    """Whether the caller is an ACTIVE participant of the task"""
    participating = await coordinator.is_participating(task_id, principal)
    return ParticipationStatusResponse(task_id=task_id, participating=participating)
