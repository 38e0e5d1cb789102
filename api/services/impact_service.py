"""Environmental impact calculation.

Impact is a sparse record: only the metrics relevant to an activity's
category are present. It is computed once when an activity is recorded and
stored with it, so changing a factor here never rewrites history.
"""

import math
from typing import Any

from models import ActivityCategory

CO2_SAVED_KG = "co2_saved_kg"
WATER_SAVED_L = "water_saved_l"

# category -> (metric, factor per unit of quantity)
IMPACT_FACTORS: dict[str, tuple[str, float]] = {
    ActivityCategory.GREEN_TRANSPORTATION.value: (CO2_SAVED_KG, 0.2),
    ActivityCategory.WATER_CONSERVATION.value: (WATER_SAVED_L, 1.0),
    ActivityCategory.TREE_PLANTATION.value: (CO2_SAVED_KG, 21.0),
    ActivityCategory.ENERGY_SAVING.value: (CO2_SAVED_KG, 0.82),
    ActivityCategory.WASTE_REDUCTION.value: (CO2_SAVED_KG, 1.5),
}


def coerce_quantity(raw: Any) -> float:
    """Coerce a user-supplied quantity to a finite, non-negative float.

    Anything that isn't a usable number (None, "abc", NaN, inf, negatives)
    becomes 0.0 so a bad quantity scores nothing instead of failing.
    """
    if isinstance(raw, bool):
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def calculate_impact(category: str, quantity: Any) -> dict[str, float]:
    """Map (category, quantity) to impact metrics.

    Unrecognized categories produce an empty record.
    """
    factor = IMPACT_FACTORS.get(category)
    if factor is None:
        return {}
    metric, multiplier = factor
    return {metric: coerce_quantity(quantity) * multiplier}


def sum_impacts(impacts: list[dict[str, Any]]) -> dict[str, float]:
    """Sum stored impact records. Missing metrics count as zero."""
    totals = {CO2_SAVED_KG: 0.0, WATER_SAVED_L: 0.0}
    for impact in impacts:
        for metric in totals:
            totals[metric] += coerce_quantity(impact.get(metric, 0.0))
    return totals
