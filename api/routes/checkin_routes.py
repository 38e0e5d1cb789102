"""Daily check-in endpoints."""

from fastapi import APIRouter, HTTPException, Request

from core.auth import CurrentIdentity
from core.database import DbSession
from core.ratelimit import CHECKIN_LIMIT, READ_LIMIT, limiter
from schemas import CheckInResponse, CheckInStatusResponse
from services.checkin_service import (
    CheckInConflictError,
    check_in,
    get_check_in_status,
)
from services.users_service import ensure_participant

router = APIRouter(prefix="/api/check-in", tags=["check-in"])


@router.post(
    "",
    response_model=CheckInResponse,
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "Concurrent check-in, retry"},
    },
)
@limiter.limit(CHECKIN_LIMIT)
async def post_check_in(
    request: Request,
    identity: CurrentIdentity,
    db: DbSession,
) -> CheckInResponse:
    """Check in for today.

    A check-in inside the 24h cool-down is not an error: it returns
    status "too-early" with the time the next check-in opens.
    """
    await ensure_participant(db, identity)

    try:
        transition = await check_in(db, identity.participant_id)
    except CheckInConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return CheckInResponse(
        status=transition.status,
        check_in_streak=transition.check_in_streak,
        redeemed=transition.redeemed,
        eco_bonus=transition.eco_bonus,
        next_check_in_after=transition.next_check_in_after,
    )


@router.get(
    "/status",
    response_model=CheckInStatusResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def check_in_status(
    request: Request,
    identity: CurrentIdentity,
    db: DbSession,
) -> CheckInStatusResponse:
    await ensure_participant(db, identity)
    result = await get_check_in_status(db, identity.participant_id)
    return CheckInStatusResponse(
        check_in_streak=result.check_in_streak,
        next_check_in_after=result.next_check_in_after,
    )
