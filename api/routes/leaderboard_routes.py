"""Leaderboard endpoints.

The leaderboard is public; it is recomputed from stored activities on every
request.
"""

from fastapi import APIRouter, HTTPException, Query, Request

from core.database import DbSession
from core.ratelimit import READ_LIMIT, limiter
from schemas import LeaderboardEntry, ParticipantDetailResponse
from services.leaderboard_service import (
    InvalidLimitError,
    LeaderboardUnavailableError,
    ParticipantNotFoundError,
    get_leaderboard,
    get_participant_detail,
)

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get(
    "",
    response_model=list[LeaderboardEntry],
    responses={
        400: {"description": "limit below 1"},
        503: {"description": "Leaderboard could not be retrieved"},
    },
)
@limiter.limit(READ_LIMIT)
async def leaderboard(
    request: Request,
    db: DbSession,
    limit: int | None = Query(default=None),
) -> list[LeaderboardEntry]:
    """Top participants by points. Limits above the maximum are clamped."""
    try:
        return await get_leaderboard(db, limit)
    except InvalidLimitError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except LeaderboardUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


@router.get(
    "/{participant_id}",
    response_model=ParticipantDetailResponse,
    responses={
        404: {"description": "Participant not found"},
        503: {"description": "Participant details could not be retrieved"},
    },
)
@limiter.limit(READ_LIMIT)
async def participant_detail(
    request: Request,
    participant_id: str,
    db: DbSession,
) -> ParticipantDetailResponse:
    """One participant's totals, badges, and activity history."""
    try:
        return await get_participant_detail(db, participant_id)
    except ParticipantNotFoundError as e:
        raise HTTPException(status_code=404, detail="Participant not found") from e
    except LeaderboardUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
