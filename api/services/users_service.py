"""User service for participant provisioning and profile management."""

from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import VerifiedIdentity
from core.logger import get_logger
from core.telemetry import log_metric, track_operation
from models import User
from repositories.activity_repository import ActivityRepository
from repositories.user_repository import UserRepository
from schemas import ActivityResponse, ProfileResponse, UserResponse
from services.leaderboard_service import ParticipantNotFoundError

logger = get_logger(__name__)


class EmailAlreadyInUseError(Exception):
    """Raised when a profile update would take another participant's email."""


def _is_placeholder_user(user_email: str) -> bool:
    """Placeholder accounts are provisioned before a real email is known."""
    return user_email.endswith("@placeholder.local")


def _to_user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


@track_operation("participant_provisioning")
async def ensure_participant(db: AsyncSession, identity: VerifiedIdentity) -> User:
    """Get the participant row, creating it on first sight.

    Federated sign-ins arrive before any local registration, so the row is
    auto-provisioned from whatever the identity carries. A placeholder email
    is filled in later if the identity supplies one.
    """
    user_repo = UserRepository(db)
    email = identity.email.strip().lower() if identity.email else None

    user, created = await user_repo.get_or_create(
        identity.participant_id,
        email=email,
        display_name=identity.display_name,
    )

    if created:
        logger.info(
            "participant.provisioned",
            user_id=user.id,
            provider=identity.provider,
            placeholder_email=_is_placeholder_user(user.email),
        )
        log_metric("users.provisioned", 1, {"provider": identity.provider})

    if email and _is_placeholder_user(user.email):
        existing = await user_repo.get_by_email(email)
        if existing is None:
            await user_repo.update(user, email=email)

    return user


async def get_user(db: AsyncSession, user_id: str) -> UserResponse:
    """Raises ParticipantNotFoundError if the participant does not exist."""
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise ParticipantNotFoundError(f"Participant {user_id} not found")
    return _to_user_response(user)


async def get_profile(db: AsyncSession, user_id: str) -> ProfileResponse:
    """Participant record plus full activity history, newest first."""
    user = await get_user(db, user_id)
    activities = await ActivityRepository(db).get_by_user(user_id)
    return ProfileResponse(
        user=user,
        activities=[ActivityResponse.model_validate(a) for a in activities],
    )


@track_operation("profile_update")
async def update_profile(
    db: AsyncSession,
    user_id: str,
    *,
    email: str | None = None,
    display_name: str | None = None,
) -> UserResponse:
    """Update display name and/or email. Email is expected lower-cased.

    Raises:
        ParticipantNotFoundError: If the participant does not exist
        EmailAlreadyInUseError: If another participant already has the email
    """
    user_repo = UserRepository(db)
    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise ParticipantNotFoundError(f"Participant {user_id} not found")

    if email is not None and email != user.email:
        owner = await user_repo.get_by_email(email)
        if owner is not None and owner.id != user_id:
            raise EmailAlreadyInUseError("Email is already in use")

    await user_repo.update(user, email=email, display_name=display_name)
    return _to_user_response(user)
