"""User (participant) repository for database operations."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import User, utcnow
from repositories.utils import dialect_name, log_slow_query


def placeholder_email(user_id: str) -> str:
    return f"{user_id}@placeholder.local"


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by their ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email. Expects email to be pre-normalized (lowercase)."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @log_slow_query("get_users_by_ids")
    async def get_many_by_ids(self, user_ids: list[str]) -> list[User]:
        """Get multiple users by their IDs in a single query.

        Returns users in no guaranteed order. Missing IDs are silently skipped.
        """
        if not user_ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        return list(result.scalars().all())

    async def _insert_ignore(
        self, user_id: str, email: str, display_name: str | None
    ) -> bool:
        """Insert the row unless it conflicts. Returns True if a row was inserted."""
        values = {"id": user_id, "email": email, "display_name": display_name}
        dialect = dialect_name(self.db)

        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as pg_insert

            result = await self.db.execute(
                pg_insert(User).values(**values).on_conflict_do_nothing()
            )
            return result.rowcount == 1
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as sqlite_insert

            result = await self.db.execute(
                sqlite_insert(User).values(**values).on_conflict_do_nothing()
            )
            return result.rowcount == 1

        try:
            async with self.db.begin_nested():
                self.db.add(User(**values))
                await self.db.flush()
        except IntegrityError:
            return False  # Savepoint rolled back, caller re-fetches
        return True

    async def get_or_create(
        self,
        user_id: str,
        *,
        email: str | None = None,
        display_name: str | None = None,
    ) -> tuple[User, bool]:
        """Get the participant, provisioning a row on first sight.

        Returns (user, created). created is False when the row already existed,
        including when a concurrent request inserted it first.

        Uses INSERT ... ON CONFLICT DO NOTHING so concurrent first requests are
        safe. If the supplied email already belongs to another participant the
        row is provisioned with a placeholder email instead.
        """
        user = await self.get_by_id(user_id)
        if user:
            return user, False

        created = await self._insert_ignore(
            user_id, email or placeholder_email(user_id), display_name
        )
        user = await self.get_by_id(user_id)
        if user is None:
            created = await self._insert_ignore(
                user_id, placeholder_email(user_id), display_name
            )
            user = await self.get_by_id(user_id)
        if user is None:
            raise RuntimeError(f"Could not provision participant {user_id}")
        return user, created

    async def update(
        self,
        user: User,
        *,
        email: str | None = None,
        display_name: str | None = None,
    ) -> User:
        """Update profile fields. Only non-None values are updated."""
        if email is not None:
            user.email = email
        if display_name is not None:
            user.display_name = display_name

        user.updated_at = utcnow()
        await self.db.flush()
        return user

    @log_slow_query("apply_check_in")
    async def apply_check_in(
        self,
        user_id: str,
        *,
        expected_streak: int,
        expected_last_check_in_at: datetime | None,
        new_streak: int,
        checked_in_at: datetime,
        eco_bonus: int = 0,
    ) -> bool:
        """Write a check-in transition only if the state is unchanged since read.

        expected_last_check_in_at must be the value exactly as loaded from the
        row. Returns False when another writer got there first.
        """
        if expected_last_check_in_at is None:
            last_matches = User.last_check_in_at.is_(None)
        else:
            last_matches = User.last_check_in_at == expected_last_check_in_at

        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.check_in_streak == expected_streak,
                last_matches,
            )
            .values(
                check_in_streak=new_streak,
                last_check_in_at=checked_in_at,
                eco_points=User.eco_points + eco_bonus,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1
