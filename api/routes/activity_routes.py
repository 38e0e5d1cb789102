"""Activity logging, totals, points, and badge endpoints."""

from fastapi import APIRouter, HTTPException, Request

from core import get_logger
from core.auth import CurrentIdentity
from core.database import DbSession
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from core.wide_event import set_wide_event_fields
from schemas import (
    ActivityCreateRequest,
    ActivityResponse,
    BadgesResponse,
    PointsResponse,
    TotalsResponse,
)
from services.activity_service import (
    ActivityValidationError,
    get_badges,
    get_points,
    get_totals,
    list_activities,
    record_activity,
)
from services.users_service import ensure_participant

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["activities"])


@router.post(
    "/activities",
    response_model=ActivityResponse,
    status_code=201,
    responses={
        400: {"description": "Missing title, category, or quantity"},
        401: {"description": "Not authenticated"},
    },
)
@limiter.limit(WRITE_LIMIT)
async def create_activity(
    request: Request,
    body: ActivityCreateRequest,
    identity: CurrentIdentity,
    db: DbSession,
) -> ActivityResponse:
    """Log an activity. Impact and points are computed once, here."""
    await ensure_participant(db, identity)

    try:
        return await record_activity(
            db,
            identity.participant_id,
            title=body.title,
            category=body.category,
            quantity=body.quantity,
            description=body.description,
            location=body.location,
            activity_date=body.activity_date,
            activity_type=body.activity_type,
        )
    except ActivityValidationError as e:
        set_wide_event_fields(validation_error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get(
    "/activities",
    response_model=list[ActivityResponse],
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_activities(
    request: Request,
    identity: CurrentIdentity,
    db: DbSession,
) -> list[ActivityResponse]:
    """The caller's activities, newest first."""
    await ensure_participant(db, identity)
    return await list_activities(db, identity.participant_id)


@router.get(
    "/activities/totals",
    response_model=TotalsResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_activity_totals(
    request: Request,
    identity: CurrentIdentity,
    db: DbSession,
) -> TotalsResponse:
    """Dashboard totals: activities today, all time, and summed impact."""
    await ensure_participant(db, identity)
    return await get_totals(db, identity.participant_id)


@router.get(
    "/points",
    response_model=PointsResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_total_points(
    request: Request,
    identity: CurrentIdentity,
    db: DbSession,
) -> PointsResponse:
    await ensure_participant(db, identity)
    total = await get_points(db, identity.participant_id)
    return PointsResponse(total_points=total)


@router.get(
    "/badges",
    response_model=BadgesResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_earned_badges(
    request: Request,
    identity: CurrentIdentity,
    db: DbSession,
) -> BadgesResponse:
    await ensure_participant(db, identity)
    badges = await get_badges(db, identity.participant_id)
    set_wide_event_fields(badge_count=len(badges))
    return BadgesResponse(badges=badges)
