"""Points calculation for logged activities.

POINT_RATES is the one authoritative rate table. Points are snapshotted on
each activity at creation time and never recomputed, so a change here only
affects activities recorded afterwards.
"""

from typing import Any

from models import ActivityCategory
from services.impact_service import coerce_quantity

POINT_RATES: dict[str, float] = {
    ActivityCategory.GREEN_TRANSPORTATION.value: 2,  # per km
    ActivityCategory.WATER_CONSERVATION.value: 1,  # per liter
    ActivityCategory.TREE_PLANTATION.value: 50,  # per tree
    ActivityCategory.ENERGY_SAVING.value: 5,  # per unit
    ActivityCategory.WASTE_REDUCTION.value: 10,  # per kg
}

# Unrecognized categories pass the quantity through
DEFAULT_RATE = 1


def rate_for(category: str) -> float:
    return POINT_RATES.get(category, DEFAULT_RATE)


def calculate_points(category: str, quantity: Any) -> float:
    """Points earned for one activity."""
    return coerce_quantity(quantity) * rate_for(category)
