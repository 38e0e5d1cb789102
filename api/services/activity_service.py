"""Activity service for recording activities and participant totals.

This module handles:
- Activity recording (the single point where impact and points are computed)
- Activity history listing
- Dashboard totals, total points, and badges

Routes should use this service for all activity-related business logic.
"""

from datetime import UTC, date, datetime, time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger
from core.telemetry import add_custom_attribute, log_metric, track_operation
from core.wide_event import set_wide_event_fields
from models import ActivityCategory
from repositories.activity_repository import ActivityRepository
from schemas import ActivityResponse, ImpactTotals, TotalsResponse
from services.badges_service import compute_badges
from services.impact_service import calculate_impact, coerce_quantity, sum_impacts
from services.points_service import calculate_points

logger = get_logger(__name__)

DEFAULT_ACTIVITY_TYPE = "Personal"

_KNOWN_CATEGORIES = {c.value for c in ActivityCategory}


class ActivityValidationError(Exception):
    """Raised when a required activity field is missing."""


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    # A numeric quantity of 0 counts as missing
    return isinstance(value, int | float) and value == 0


def validate_activity_fields(title: Any, category: Any, quantity: Any) -> None:
    """Raise ActivityValidationError naming every missing required field."""
    missing = [
        name
        for name, value in (
            ("title", title),
            ("category", category),
            ("quantity", quantity),
        )
        if _is_blank(value)
    ]
    if missing:
        raise ActivityValidationError(
            f"Missing required fields: {', '.join(missing)}"
        )


@track_operation("activity_recording")
async def record_activity(
    db: AsyncSession,
    user_id: str,
    *,
    title: str | None,
    category: str | None,
    quantity: Any,
    description: str | None = None,
    location: str | None = None,
    activity_date: date | None = None,
    activity_type: str | None = None,
) -> ActivityResponse:
    """Record an activity, snapshotting its impact and points.

    Unrecognized categories are accepted: they score zero impact and
    pass-through points.

    Raises:
        ActivityValidationError: If title, category, or quantity is missing
    """
    validate_activity_fields(title, category, quantity)

    category = category.strip()
    amount = coerce_quantity(quantity)
    impact = calculate_impact(category, amount)
    points = calculate_points(category, amount)

    add_custom_attribute("activity.category", category)
    if category not in _KNOWN_CATEGORIES:
        logger.info(
            "activity.category.unrecognized", user_id=user_id, category=category
        )

    activity = await ActivityRepository(db).create(
        user_id,
        title=title.strip(),
        category=category,
        quantity=amount,
        impact=impact,
        points_earned=points,
        description=description,
        location=location,
        activity_date=activity_date,
        activity_type=activity_type or DEFAULT_ACTIVITY_TYPE,
    )

    set_wide_event_fields(activity_category=category, activity_points=points)
    log_metric("activities.recorded", 1, {"category": category})

    return ActivityResponse.model_validate(activity)


async def list_activities(db: AsyncSession, user_id: str) -> list[ActivityResponse]:
    """A participant's activities, newest first."""
    activities = await ActivityRepository(db).get_by_user(user_id)
    return [ActivityResponse.model_validate(a) for a in activities]


def start_of_today_utc(now: datetime | None = None) -> datetime:
    now = now or datetime.now(UTC)
    return datetime.combine(now.astimezone(UTC).date(), time.min, tzinfo=UTC)


async def get_totals(
    db: AsyncSession, user_id: str, now: datetime | None = None
) -> TotalsResponse:
    """Dashboard totals: today's count, all-time count, and summed impact."""
    activity_repo = ActivityRepository(db)

    today_count = await activity_repo.count_created_since(
        user_id, start_of_today_utc(now)
    )
    total_count = await activity_repo.count_by_user(user_id)
    impact = sum_impacts(await activity_repo.get_impacts(user_id))

    return TotalsResponse(
        today_activities=today_count,
        total_activities=total_count,
        total_impact=ImpactTotals(**impact),
    )


async def get_points(db: AsyncSession, user_id: str) -> float:
    """Sum of points_earned across the participant's activities."""
    aggregate = await ActivityRepository(db).aggregate_for_user(user_id)
    return aggregate.points


async def get_badges(db: AsyncSession, user_id: str) -> list[str]:
    aggregate = await ActivityRepository(db).aggregate_for_user(user_id)
    return compute_badges(aggregate.points, aggregate.total_activities)
