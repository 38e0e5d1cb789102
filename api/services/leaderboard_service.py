"""Leaderboard ranking and participant detail.

The leaderboard is a read-side projection recomputed on every request from
the stored activity snapshots; nothing about it is cached or stored.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.logger import get_logger
from core.telemetry import add_custom_attribute, track_operation
from models import User
from repositories.activity_repository import ActivityRepository, PointsAggregate
from repositories.user_repository import UserRepository
from schemas import ActivityResponse, LeaderboardEntry, ParticipantDetailResponse
from services.badges_service import compute_badges

logger = get_logger(__name__)

UNKNOWN_USER_NAME = "Unknown User"


class LeaderboardUnavailableError(Exception):
    """Raised when the leaderboard could not be aggregated."""


class ParticipantNotFoundError(Exception):
    """Raised when a participant record does not exist."""


class InvalidLimitError(Exception):
    """Raised when a leaderboard limit is below 1."""


@dataclass(frozen=True)
class _Identity:
    name: str
    email: str | None


def _identity_for(user: User | None) -> _Identity:
    if user is None:
        return _Identity(UNKNOWN_USER_NAME, None)
    return _Identity(user.display_name or user.email, user.email)


def resolve_limit(limit: int | None) -> int:
    """Apply the default to a missing limit and clamp it to the maximum window."""
    settings = get_settings()
    if limit is None:
        return settings.leaderboard_default_limit
    if limit < 1:
        raise InvalidLimitError("limit must be at least 1")
    return min(limit, settings.leaderboard_max_limit)


def rank_aggregates(
    aggregates: Iterable[PointsAggregate], limit: int
) -> list[PointsAggregate]:
    """Order by points descending, then participant id ascending, and truncate."""
    ordered = sorted(aggregates, key=lambda a: (-a.points, a.user_id))
    return ordered[:limit]


def build_leaderboard(
    aggregates: Iterable[PointsAggregate],
    participants: Mapping[str, User],
    limit: int,
) -> list[LeaderboardEntry]:
    """Rank per-participant totals and attach identity and badges.

    Ranks are dense and 1-based by sorted position. Participants missing from
    the lookup are shown as "Unknown User".
    """
    entries = []
    for rank, aggregate in enumerate(rank_aggregates(aggregates, limit), start=1):
        identity = _identity_for(participants.get(aggregate.user_id))
        entries.append(
            LeaderboardEntry(
                rank=rank,
                participant_id=aggregate.user_id,
                name=identity.name,
                email=identity.email,
                points=aggregate.points,
                total_activities=aggregate.total_activities,
                badges=compute_badges(aggregate.points, aggregate.total_activities),
            )
        )
    return entries


@track_operation("leaderboard_aggregation")
async def get_leaderboard(
    db: AsyncSession, limit: int | None = None
) -> list[LeaderboardEntry]:
    """Top participants by total points.

    Raises:
        InvalidLimitError: If limit is below 1
        LeaderboardUnavailableError: If the aggregation query fails
    """
    window = resolve_limit(limit)
    add_custom_attribute("leaderboard.limit", window)

    try:
        aggregates = await ActivityRepository(db).aggregate_points_by_user(window)
        users = await UserRepository(db).get_many_by_ids(
            [a.user_id for a in aggregates]
        )
    except SQLAlchemyError as e:
        logger.exception("leaderboard.aggregation.failed", limit=window)
        raise LeaderboardUnavailableError("Failed to retrieve leaderboard") from e

    return build_leaderboard(aggregates, {u.id: u for u in users}, window)


@track_operation("participant_detail")
async def get_participant_detail(
    db: AsyncSession, participant_id: str
) -> ParticipantDetailResponse:
    """Totals, badges, and full activity history for one participant.

    Raises:
        ParticipantNotFoundError: If the participant does not exist
        LeaderboardUnavailableError: If the lookup fails
    """
    try:
        user = await UserRepository(db).get_by_id(participant_id)
        if user is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")

        activity_repo = ActivityRepository(db)
        aggregate = await activity_repo.aggregate_for_user(participant_id)
        activities = await activity_repo.get_by_user(participant_id)
    except SQLAlchemyError as e:
        logger.exception(
            "leaderboard.participant_detail.failed", participant_id=participant_id
        )
        raise LeaderboardUnavailableError(
            "Failed to retrieve participant details"
        ) from e

    identity = _identity_for(user)
    return ParticipantDetailResponse(
        participant_id=participant_id,
        name=identity.name,
        email=identity.email,
        points=aggregate.points,
        total_activities=aggregate.total_activities,
        badges=compute_badges(aggregate.points, aggregate.total_activities),
        activities=[ActivityResponse.model_validate(a) for a in activities],
    )
