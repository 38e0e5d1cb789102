"""Repository for activity logging and aggregation."""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, NamedTuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Activity
from repositories.utils import log_slow_query


class PointsAggregate(NamedTuple):
    """Per-participant points and activity count."""

    user_id: str
    points: float
    total_activities: int


class ActivityRepository:
    """Repository for activity operations (logging, totals, leaderboard)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        user_id: str,
        *,
        title: str,
        category: str,
        quantity: float,
        impact: dict[str, float],
        points_earned: float,
        description: str | None = None,
        location: str | None = None,
        activity_date: date | None = None,
        activity_type: str = "Personal",
    ) -> Activity:
        """Insert an activity with its already-computed impact and points."""
        activity = Activity(
            user_id=user_id,
            title=title,
            category=category,
            quantity=quantity,
            impact=impact,
            points_earned=points_earned,
            description=description,
            location=location,
            activity_date=activity_date,
            activity_type=activity_type,
        )
        self.db.add(activity)
        await self.db.flush()
        await self.db.refresh(activity)
        return activity

    async def get_by_user(
        self,
        user_id: str,
        *,
        limit: int | None = None,
    ) -> Sequence[Activity]:
        """Get activities for a user, most recent first."""
        query = (
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def count_by_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Activity.id)).where(Activity.user_id == user_id)
        )
        return result.scalar_one()

    async def count_created_since(self, user_id: str, since: datetime) -> int:
        """Count activities created at or after a point in time."""
        result = await self.db.execute(
            select(func.count(Activity.id)).where(
                Activity.user_id == user_id,
                Activity.created_at >= since,
            )
        )
        return result.scalar_one()

    async def get_impacts(self, user_id: str) -> list[dict[str, Any]]:
        """Stored impact records for a user (summed in the service)."""
        result = await self.db.execute(
            select(Activity.impact).where(Activity.user_id == user_id)
        )
        return [row[0] or {} for row in result.all()]

    async def aggregate_for_user(self, user_id: str) -> PointsAggregate:
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(Activity.points_earned), 0.0),
                func.count(Activity.id),
            ).where(Activity.user_id == user_id)
        )
        points, count = result.one()
        return PointsAggregate(user_id, float(points), int(count))

    @log_slow_query("aggregate_points_by_user")
    async def aggregate_points_by_user(self, limit: int) -> list[PointsAggregate]:
        """Top participants by summed points_earned.

        Ordered by points descending then user_id ascending so the window
        boundary is stable when points tie.
        """
        points = func.sum(Activity.points_earned).label("points")
        result = await self.db.execute(
            select(Activity.user_id, points, func.count(Activity.id))
            .group_by(Activity.user_id)
            .order_by(points.desc(), Activity.user_id.asc())
            .limit(limit)
        )
        return [
            PointsAggregate(user_id, float(total or 0.0), int(count))
            for user_id, total, count in result.all()
        ]
