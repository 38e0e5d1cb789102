"""SQLAlchemy models for EcoTrack participants and activities."""

from datetime import UTC, date, datetime
from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class ActivityCategory(str, PyEnum):
    """Known sustainability categories. Quantity unit is implied by category."""

    GREEN_TRANSPORTATION = "Green Transportation"  # km
    WATER_CONSERVATION = "Water Conservation"  # liters
    TREE_PLANTATION = "Tree Plantation"  # trees
    ENERGY_SAVING = "Energy Saving"  # energy units
    WASTE_REDUCTION = "Waste Reduction"  # kg


class User(TimestampMixin, Base):
    """A participant. Rows are created on registration or first federated sign-in.

    eco_points only holds redeemed check-in bonuses; activity points are
    summed from activities.points_earned.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    eco_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    check_in_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_check_in_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    activities: Mapped[list["Activity"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Activity(Base):
    """One logged sustainability action.

    Note: impact and points_earned are computed once at creation and never
    recomputed, so later rate changes leave history untouched.
    """

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_created", "user_id", "created_at"),
        Index("ix_activities_user_points", "user_id", "points_earned"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Unrecognized categories are stored as-is (zero impact, rate-1 points)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    impact: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    points_earned: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    activity_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Personal"
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Pending")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    user: Mapped["User"] = relationship(back_populates="activities")
