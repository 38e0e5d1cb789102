"""Service tests for daily check-ins against the database."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from services.checkin_service import (
    CHECKED_IN,
    TOO_EARLY,
    CheckInConflictError,
    check_in,
    get_check_in_status,
)
from services.leaderboard_service import ParticipantNotFoundError
from tests.factories import UserFactory, create_async

pytestmark = pytest.mark.integration

T = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


@pytest.mark.asyncio
class TestCheckIn:
    async def test_first_check_in(self, db_session):
        user = await create_async(UserFactory, db_session)

        result = await check_in(db_session, user.id, now=T)

        assert result.status == CHECKED_IN
        assert result.check_in_streak == 1
        assert result.redeemed is False
        assert user.check_in_streak == 1
        assert user.last_check_in_at.replace(tzinfo=UTC) == T

    async def test_sequence_too_early_increment_reset(self, db_session):
        user = await create_async(UserFactory, db_session)
        await check_in(db_session, user.id, now=T)

        early = await check_in(db_session, user.id, now=T + timedelta(hours=23))
        assert early.status == TOO_EARLY
        assert early.next_check_in_after == T + timedelta(hours=24)
        assert user.check_in_streak == 1
        assert user.last_check_in_at.replace(tzinfo=UTC) == T

        second = T + timedelta(hours=30)
        result = await check_in(db_session, user.id, now=second)
        assert result.check_in_streak == 2
        assert user.last_check_in_at.replace(tzinfo=UTC) == second

        lapsed = await check_in(db_session, user.id, now=second + timedelta(hours=50))
        assert lapsed.check_in_streak == 1

    async def test_redemption_at_ten(self, db_session):
        user = await create_async(
            UserFactory,
            db_session,
            check_in_streak=9,
            last_check_in_at=T,
            eco_points=5,
        )

        result = await check_in(db_session, user.id, now=T + timedelta(hours=30))

        assert result.redeemed is True
        assert result.eco_bonus == 50
        assert result.check_in_streak == 0
        assert user.check_in_streak == 0
        assert user.eco_points == 55

    async def test_unknown_participant(self, db_session):
        with pytest.raises(ParticipantNotFoundError):
            await check_in(db_session, "ghost", now=T)

    async def test_lost_conditional_write_is_a_conflict(self, db_session):
        user = await create_async(UserFactory, db_session)

        with patch(
            "services.checkin_service.UserRepository.apply_check_in",
            AsyncMock(return_value=False),
        ):
            with pytest.raises(CheckInConflictError):
                await check_in(db_session, user.id, now=T)

        await db_session.refresh(user)
        assert user.check_in_streak == 0
        assert user.last_check_in_at is None


@pytest.mark.asyncio
class TestCheckInStatus:
    async def test_never_checked_in(self, db_session):
        user = await create_async(UserFactory, db_session)

        status = await get_check_in_status(db_session, user.id)

        assert status.check_in_streak == 0
        assert status.next_check_in_after is None

    async def test_after_check_in(self, db_session):
        user = await create_async(UserFactory, db_session)
        await check_in(db_session, user.id, now=T)

        status = await get_check_in_status(db_session, user.id)

        assert status.check_in_streak == 1
        assert status.next_check_in_after == T + timedelta(hours=24)

    async def test_status_does_not_mutate(self, db_session):
        user = await create_async(
            UserFactory, db_session, check_in_streak=3, last_check_in_at=T
        )

        await get_check_in_status(db_session, user.id)
        await db_session.refresh(user)

        assert user.check_in_streak == 3
