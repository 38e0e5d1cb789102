"""User-related endpoints."""

from fastapi import APIRouter, HTTPException, Request

from core.auth import CurrentIdentity
from core.database import DbSession
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import ProfileResponse, ProfileUpdateRequest, UserResponse
from services.users_service import (
    EmailAlreadyInUseError,
    ensure_participant,
    get_profile,
    get_user,
    update_profile,
)

router = APIRouter(prefix="/api/user", tags=["users"])


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit("30/minute")
async def get_current_user(
    request: Request, identity: CurrentIdentity, db: DbSession
) -> UserResponse:
    """Get current participant info."""
    await ensure_participant(db, identity)
    return await get_user(db, identity.participant_id)


@router.patch(
    "/me",
    response_model=UserResponse,
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "Email already in use"},
    },
)
@limiter.limit(WRITE_LIMIT)
async def update_current_user(
    request: Request,
    body: ProfileUpdateRequest,
    identity: CurrentIdentity,
    db: DbSession,
) -> UserResponse:
    """Update display name and/or email."""
    await ensure_participant(db, identity)
    try:
        return await update_profile(
            db,
            identity.participant_id,
            email=body.email,
            display_name=body.display_name,
        )
    except EmailAlreadyInUseError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


@router.get(
    "/settings",
    response_model=ProfileResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_settings_page(
    request: Request, identity: CurrentIdentity, db: DbSession
) -> ProfileResponse:
    """Profile plus full activity history."""
    await ensure_participant(db, identity)
    return await get_profile(db, identity.participant_id)
