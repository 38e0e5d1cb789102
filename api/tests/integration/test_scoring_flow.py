"""End-to-end service tests for recording activities and reading totals."""

from datetime import UTC, date, datetime

import pytest
import time_machine

from models import Activity
from services.activity_service import (
    ActivityValidationError,
    get_badges,
    get_points,
    get_totals,
    list_activities,
    record_activity,
)
from services.leaderboard_service import (
    ParticipantNotFoundError,
    get_leaderboard,
    get_participant_detail,
)
from services.points_service import POINT_RATES
from tests.factories import UserFactory, create_async

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
class TestRecordActivity:
    async def test_tree_then_waste(self, db_session):
        user = await create_async(UserFactory, db_session)

        trees = await record_activity(
            db_session,
            user.id,
            title="Planted oaks",
            category="Tree Plantation",
            quantity=3,
        )
        waste = await record_activity(
            db_session,
            user.id,
            title="Recycling drive",
            category="Waste Reduction",
            quantity=2,
        )

        assert trees.impact == {"co2_saved_kg": 63.0}
        assert trees.points_earned == 150
        assert waste.points_earned == 20
        assert await get_points(db_session, user.id) == 170
        assert await get_badges(db_session, user.id) == [
            "Beginner",
            "100 Points Club",
        ]

    async def test_metadata_and_defaults_stored(self, db_session):
        user = await create_async(UserFactory, db_session)

        activity = await record_activity(
            db_session,
            user.id,
            title="  Bike commute ",
            category="Green Transportation",
            quantity="12",
            description="To the office",
            location="Lisbon",
            activity_date=date(2026, 4, 2),
        )

        assert activity.title == "Bike commute"
        assert activity.quantity == 12.0
        assert activity.points_earned == 24
        assert activity.location == "Lisbon"
        assert activity.activity_date == date(2026, 4, 2)
        assert activity.activity_type == "Personal"
        assert activity.status == "Pending"

    async def test_unrecognized_category_is_degraded_not_rejected(self, db_session):
        user = await create_async(UserFactory, db_session)

        activity = await record_activity(
            db_session, user.id, title="Repair cafe", category="Repair", quantity=4
        )

        assert activity.impact == {}
        assert activity.points_earned == 4

    async def test_non_numeric_quantity_scores_zero(self, db_session):
        user = await create_async(UserFactory, db_session)

        activity = await record_activity(
            db_session,
            user.id,
            title="Trees",
            category="Tree Plantation",
            quantity="several",
        )

        assert activity.quantity == 0.0
        assert activity.points_earned == 0
        assert activity.impact == {"co2_saved_kg": 0.0}

    async def test_missing_fields_rejected(self, db_session):
        user = await create_async(UserFactory, db_session)
        with pytest.raises(ActivityValidationError):
            await record_activity(
                db_session, user.id, title="", category="Tree Plantation", quantity=1
            )

    async def test_snapshot_survives_rate_change(self, db_session, monkeypatch):
        user = await create_async(UserFactory, db_session)
        await record_activity(
            db_session, user.id, title="Trees", category="Tree Plantation", quantity=1
        )

        monkeypatch.setitem(POINT_RATES, "Tree Plantation", 999)

        assert await get_points(db_session, user.id) == 50
        stored = await db_session.get(Activity, 1)
        assert stored.points_earned == 50


@pytest.mark.asyncio
class TestTotals:
    async def test_totals_split_today_from_history(self, db_session):
        user = await create_async(UserFactory, db_session)

        with time_machine.travel(datetime(2026, 5, 3, 22, 0, tzinfo=UTC), tick=False):
            await record_activity(
                db_session,
                user.id,
                title="Yesterday trees",
                category="Tree Plantation",
                quantity=1,
            )

        with time_machine.travel(datetime(2026, 5, 4, 9, 0, tzinfo=UTC), tick=False):
            await record_activity(
                db_session,
                user.id,
                title="Shorter shower",
                category="Water Conservation",
                quantity=30,
            )
            totals = await get_totals(db_session, user.id)

        assert totals.today_activities == 1
        assert totals.total_activities == 2
        assert totals.total_impact.co2_saved_kg == 21.0
        assert totals.total_impact.water_saved_l == 30.0

    async def test_list_newest_first(self, db_session):
        user = await create_async(UserFactory, db_session)
        for hour, title in [(8, "first"), (9, "second")]:
            with time_machine.travel(
                datetime(2026, 5, 4, hour, tzinfo=UTC), tick=False
            ):
                await record_activity(
                    db_session,
                    user.id,
                    title=title,
                    category="Energy Saving",
                    quantity=1,
                )

        activities = await list_activities(db_session, user.id)

        assert [a.title for a in activities] == ["second", "first"]


@pytest.mark.asyncio
class TestLeaderboard:
    async def test_ranked_with_identity_and_badges(self, db_session):
        leader = await create_async(
            UserFactory, db_session, id="leader", display_name="Lea"
        )
        runner = await create_async(
            UserFactory, db_session, id="runner", display_name="Run"
        )
        await record_activity(
            db_session, leader.id, title="t", category="Tree Plantation", quantity=3
        )
        await record_activity(
            db_session, runner.id, title="w", category="Waste Reduction", quantity=2
        )

        board = await get_leaderboard(db_session)

        assert [(e.rank, e.participant_id, e.points) for e in board] == [
            (1, "leader", 150.0),
            (2, "runner", 20.0),
        ]
        assert board[0].name == "Lea"
        assert board[0].badges == ["Beginner", "100 Points Club"]
        assert board[1].badges == ["Beginner"]

    async def test_limit_is_applied(self, db_session):
        for i in range(4):
            user = await create_async(UserFactory, db_session, id=f"p{i}")
            await record_activity(
                db_session, user.id, title="t", category="Energy Saving", quantity=i + 1
            )

        board = await get_leaderboard(db_session, limit=2)

        assert [e.participant_id for e in board] == ["p3", "p2"]

    async def test_participant_detail(self, db_session):
        user = await create_async(UserFactory, db_session, display_name="Dee")
        await record_activity(
            db_session, user.id, title="t", category="Tree Plantation", quantity=2
        )

        detail = await get_participant_detail(db_session, user.id)

        assert detail.name == "Dee"
        assert detail.points == 100.0
        assert detail.total_activities == 1
        assert detail.badges == ["Beginner", "100 Points Club"]
        assert len(detail.activities) == 1

    async def test_participant_detail_not_found(self, db_session):
        with pytest.raises(ParticipantNotFoundError):
            await get_participant_detail(db_session, "missing")
