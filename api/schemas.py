"""Pydantic schemas for API request/response validation."""

from datetime import date, datetime
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)


class UserResponse(BaseModel):
    """Participant profile (never includes credentials)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    display_name: str | None = None
    eco_points: int = 0
    check_in_streak: int = 0
    last_check_in_at: datetime | None = None
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    """Partial profile update. Omitted fields are left unchanged."""

    display_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class ActivityCreateRequest(BaseModel):
    """Request to log an activity.

    Required fields are checked by the service so a missing title, category,
    or quantity produces one 400 with a readable message. quantity is kept
    as sent, so numeric strings are parsed later and anything non-numeric,
    booleans included, scores zero.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    quantity: StrictFloat | StrictInt | StrictStr | StrictBool | None = None
    description: str | None = Field(default=None, max_length=4096)
    location: str | None = Field(default=None, max_length=255)
    activity_date: date | None = Field(default=None, alias="date")
    activity_type: str | None = Field(default=None, max_length=50)


class ActivityResponse(BaseModel):
    """A stored activity with its frozen impact and points."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    category: str
    quantity: float
    impact: dict[str, float]
    points_earned: float
    description: str | None = None
    location: str | None = None
    activity_date: date | None = None
    activity_type: str
    status: str
    created_at: datetime


class ImpactTotals(BaseModel):
    co2_saved_kg: float = 0.0
    water_saved_l: float = 0.0


class TotalsResponse(BaseModel):
    """Dashboard totals for one participant."""

    today_activities: int
    total_activities: int
    total_impact: ImpactTotals


class PointsResponse(BaseModel):
    total_points: float


class BadgesResponse(BaseModel):
    badges: list[str]


class LeaderboardEntry(BaseModel):
    """One ranked row. name/email fall back when the participant is missing."""

    rank: int
    participant_id: str
    name: str
    email: str | None = None
    points: float
    total_activities: int
    badges: list[str]


class ParticipantDetailResponse(BaseModel):
    participant_id: str
    name: str
    email: str | None = None
    points: float
    total_activities: int
    badges: list[str]
    activities: list[ActivityResponse]


class ProfileResponse(BaseModel):
    """Participant settings page: profile plus full activity history."""

    user: UserResponse
    activities: list[ActivityResponse]


class CheckInResponse(BaseModel):
    """Outcome of one check-in attempt. too-early is a normal outcome."""

    status: Literal["checked-in", "too-early"]
    check_in_streak: int
    redeemed: bool
    eco_bonus: int
    next_check_in_after: datetime


class CheckInStatusResponse(BaseModel):
    check_in_streak: int
    next_check_in_after: datetime | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(HealthResponse):
    database: bool
    pool: PoolStatusResponse | None = None
