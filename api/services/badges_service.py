"""Badge computation for gamification.

Badges are computed on the fly from a participant's cumulative totals; no
table stores them. Every threshold is checked independently, so crossing a
higher tier never removes a lower one.
"""

from typing import TypedDict

from core.telemetry import add_custom_attribute


class BadgeTier(TypedDict):
    """Badge threshold configuration."""

    name: str
    threshold: int


ACTIVITY_BADGES: list[BadgeTier] = [
    {"name": "Beginner", "threshold": 1},
    {"name": "Consistent Contributor", "threshold": 10},
    {"name": "Eco Champion", "threshold": 25},
    {"name": "Sustainability Legend", "threshold": 50},
]

POINTS_BADGES: list[BadgeTier] = [
    {"name": "100 Points Club", "threshold": 100},
    {"name": "500 Points Club", "threshold": 500},
    {"name": "1000 Points Club", "threshold": 1000},
]


def compute_activity_badges(total_activities: int) -> list[str]:
    return [b["name"] for b in ACTIVITY_BADGES if total_activities >= b["threshold"]]


def compute_points_badges(total_points: float) -> list[str]:
    return [b["name"] for b in POINTS_BADGES if total_points >= b["threshold"]]


def compute_badges(total_points: float, total_activities: int) -> list[str]:
    """Compute every badge a participant has earned.

    Args:
        total_points: Sum of points_earned across the participant's activities
        total_activities: Number of activities logged

    Returns:
        Badge names, activity tiers ascending then points tiers ascending
    """
    badges = compute_activity_badges(total_activities) + compute_points_badges(
        total_points
    )
    add_custom_attribute("badges.count", len(badges))
    return badges
