"""Participation API Routes

The caller's own participation history and counts, and the volunteer
leaderboard.
"""

from fastapi import APIRouter, Query

from .dependencies import CoordinatorDep, PrincipalDep
from .schemas import (
    ParticipationListResponse,
    ParticipationStatisticsResponse,
    VolunteerRankingListResponse,
    participation_to_response,
    ranking_to_response,
    statistics_to_response,
)

router = APIRouter(prefix="/api/v1/participations", tags=["participations"])


@router.get("/me", response_model=ParticipationListResponse)
async def list_my_participations(
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
    limit: int = Query(50, ge=1, le=200),
):
    """Participation history of the caller, newest first"""
    participations = await coordinator.list_participations(principal, limit=limit)
    return ParticipationListResponse(
        participations=[participation_to_response(p) for p in participations],
        total=len(participations),
    )


@router.get("/me/statistics", response_model=ParticipationStatisticsResponse)
async def my_participation_statistics(
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
):
    """Active / left / total participation counts of the caller"""
    stats = await coordinator.statistics(principal)
    return statistics_to_response(stats)


@router.get("/rankings", response_model=VolunteerRankingListResponse)
async def volunteer_rankings(
    principal: PrincipalDep,
    coordinator: CoordinatorDep,
    limit: int = Query(10, ge=1, le=100),
):
    """Volunteers with the most ACTIVE participations"""
    rankings = await coordinator.rankings(limit=limit)
    return VolunteerRankingListResponse(
        rankings=[ranking_to_response(r) for r in rankings],
        total=len(rankings),
    )
