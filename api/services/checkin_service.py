"""Daily check-in streaks with redemption.

A participant's check-in state is two stored fields, check_in_streak and
last_check_in_at. The hours elapsed since the last accepted check-in decide
what an attempt does:

- never checked in: streak becomes 1
- under 24h: too early, nothing changes
- 24h up to 48h: streak + 1
- 48h or more: streak restarts at 1

When the new streak reaches REDEMPTION_THRESHOLD it is redeemed for
REDEMPTION_BONUS eco points and the streak goes back to 0.

Writes are conditional on the state that was read (see
UserRepository.apply_check_in), and attempts for the same participant are
serialized within the process, so two simultaneous check-ins can't both be
accepted.
"""

import asyncio
import weakref
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger
from core.telemetry import add_custom_attribute, log_metric, track_operation
from core.wide_event import set_wide_event_fields
from repositories.user_repository import UserRepository
from services.leaderboard_service import ParticipantNotFoundError

logger = get_logger(__name__)

COOLDOWN = timedelta(hours=24)
LAPSE_AFTER = timedelta(hours=48)
REDEMPTION_THRESHOLD = 10
REDEMPTION_BONUS = 50

CHECKED_IN = "checked-in"
TOO_EARLY = "too-early"


class CheckInConflictError(Exception):
    """Raised when the participant's check-in state changed during the attempt."""


@dataclass(frozen=True)
class CheckInTransition:
    """Result of evaluating one check-in attempt.

    For a too-early attempt, check_in_streak is the unchanged current streak
    and next_check_in_after is when the cool-down ends.
    """

    status: str
    check_in_streak: int
    redeemed: bool
    eco_bonus: int
    next_check_in_after: datetime

    @property
    def accepted(self) -> bool:
        return self.status == CHECKED_IN


@dataclass(frozen=True)
class CheckInStatus:
    check_in_streak: int
    next_check_in_after: datetime | None


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (sqlite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def evaluate_check_in(
    streak: int, last_check_in_at: datetime | None, now: datetime
) -> CheckInTransition:
    """Decide the outcome of a check-in attempt at `now`. Pure."""
    now = as_utc(now)

    if last_check_in_at is None:
        new_streak = 1
    else:
        last = as_utc(last_check_in_at)
        elapsed = now - last
        if elapsed < COOLDOWN:
            return CheckInTransition(
                status=TOO_EARLY,
                check_in_streak=streak,
                redeemed=False,
                eco_bonus=0,
                next_check_in_after=last + COOLDOWN,
            )
        new_streak = streak + 1 if elapsed < LAPSE_AFTER else 1

    redeemed = new_streak >= REDEMPTION_THRESHOLD
    return CheckInTransition(
        status=CHECKED_IN,
        check_in_streak=0 if redeemed else new_streak,
        redeemed=redeemed,
        eco_bonus=REDEMPTION_BONUS if redeemed else 0,
        next_check_in_after=now + COOLDOWN,
    )


# In-memory locks serializing check-ins per participant within this process.
# Entries drop out once no in-flight check-in holds a reference to the lock.
_checkin_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)
_locks_lock = asyncio.Lock()  # Protects _checkin_locks itself


async def _get_checkin_lock(user_id: str) -> asyncio.Lock:
    """Get or create the check-in lock for a participant."""
    async with _locks_lock:
        lock = _checkin_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            _checkin_locks[user_id] = lock
        return lock


@track_operation("check_in")
async def check_in(
    db: AsyncSession, user_id: str, now: datetime | None = None
) -> CheckInTransition:
    """Attempt a daily check-in.

    Too-early attempts are a normal outcome and write nothing.

    Raises:
        ParticipantNotFoundError: If the participant does not exist
        CheckInConflictError: If a concurrent check-in changed the state first
    """
    now = as_utc(now or datetime.now(UTC))
    user_repo = UserRepository(db)

    lock = await _get_checkin_lock(user_id)
    async with lock:
        user = await user_repo.get_by_id(user_id)
        if user is None:
            raise ParticipantNotFoundError(f"Participant {user_id} not found")

        # Keep the raw stored value for the conditional write
        observed_streak = user.check_in_streak
        observed_last = user.last_check_in_at

        transition = evaluate_check_in(observed_streak, observed_last, now)
        add_custom_attribute("checkin.status", transition.status)
        set_wide_event_fields(checkin_status=transition.status)

        if not transition.accepted:
            logger.debug(
                "checkin.too_early",
                user_id=user_id,
                next_check_in_after=transition.next_check_in_after.isoformat(),
            )
            return transition

        applied = await user_repo.apply_check_in(
            user_id,
            expected_streak=observed_streak,
            expected_last_check_in_at=observed_last,
            new_streak=transition.check_in_streak,
            checked_in_at=now,
            eco_bonus=transition.eco_bonus,
        )
        if not applied:
            logger.warning("checkin.conflict", user_id=user_id)
            raise CheckInConflictError(
                "Check-in state changed during this request. Please retry."
            )
        await db.refresh(user)

    logger.info(
        "checkin.accepted",
        user_id=user_id,
        check_in_streak=transition.check_in_streak,
        redeemed=transition.redeemed,
    )
    log_metric("checkins.accepted", 1, {"redeemed": transition.redeemed})
    if transition.redeemed:
        log_metric("checkins.redeemed_points", transition.eco_bonus)

    return transition


async def get_check_in_status(db: AsyncSession, user_id: str) -> CheckInStatus:
    """Current streak and when the next check-in opens. Read-only.

    Raises:
        ParticipantNotFoundError: If the participant does not exist
    """
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise ParticipantNotFoundError(f"Participant {user_id} not found")

    if user.last_check_in_at is None:
        return CheckInStatus(check_in_streak=0, next_check_in_after=None)

    return CheckInStatus(
        check_in_streak=user.check_in_streak,
        next_check_in_after=as_utc(user.last_check_in_at) + COOLDOWN,
    )
