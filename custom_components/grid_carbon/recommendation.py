"""
Recommendation mapping for the Grid Carbon integration.

Maps a percentile rank (lower = cleaner) to one of five advisory tiers, and
the inverted percentile (100 - percentile, "cleanliness") to the compact
emoji / colour set. Every band is half-open: a value sitting exactly on a cut
point belongs to the band above it (20 -> "good", not "excellent").

Pure functions, no HA or network dependencies.
"""
from __future__ import annotations

import bisect
import dataclasses
import enum

from .const import (
    CLEANLINESS_EMOJIS,
    INTENSITY_THRESHOLDS,
    PERCENTILE_THRESHOLDS,
    QUINTILE_COLORS,
)


class Tier(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    OKAY = "okay"
    DELAY = "delay"
    AVOID = "avoid"


_TIERS = (Tier.EXCELLENT, Tier.GOOD, Tier.OKAY, Tier.DELAY, Tier.AVOID)


@dataclasses.dataclass(frozen=True)
class Recommendation:
    tier: Tier
    title: str
    message: str
    icon: str
    color: str


_RECOMMENDATIONS: dict[Tier, Recommendation] = {
    Tier.EXCELLENT: Recommendation(
        Tier.EXCELLENT,
        "Excellent Time for Heavy Loads",
        "Excellent time to run high-energy tasks!",
        "mdi:star-circle",
        QUINTILE_COLORS[0],
    ),
    Tier.GOOD: Recommendation(
        Tier.GOOD,
        "Good Time for Heavy Loads",
        "Good time for high-energy tasks",
        "mdi:check-circle",
        QUINTILE_COLORS[1],
    ),
    Tier.OKAY: Recommendation(
        Tier.OKAY,
        "OK for Normal Tasks",
        "OK to run normal tasks",
        "mdi:equal-box",
        QUINTILE_COLORS[2],
    ),
    Tier.DELAY: Recommendation(
        Tier.DELAY,
        "Delay Heavy Loads",
        "Consider delaying high-energy tasks if possible",
        "mdi:clock-outline",
        QUINTILE_COLORS[3],
    ),
    Tier.AVOID: Recommendation(
        Tier.AVOID,
        "Avoid Heavy Loads - Very Dirty Grid",
        "Avoid high-energy tasks - grid is very dirty",
        "mdi:close-circle",
        QUINTILE_COLORS[4],
    ),
}


def band_index(value: int | float, thresholds=PERCENTILE_THRESHOLDS) -> int:
    """Index of the half-open band containing value (0 .. len(thresholds))."""
    return bisect.bisect_right(thresholds, value)


def tier_for_percentile(percentile: int | float) -> Tier:
    return _TIERS[band_index(percentile)]


def recommendation_for_percentile(percentile: int | float) -> Recommendation:
    return _RECOMMENDATIONS[tier_for_percentile(percentile)]


def emoji_for_percentile(cleanliness: int | float) -> str:
    """Compact emoji for a cleanliness rank (100 - percentile); 🌿 is cleanest."""
    return CLEANLINESS_EMOJIS[band_index(cleanliness)]


def color_for_percentile(cleanliness: int | float) -> str:
    """Colour for a cleanliness rank (100 - percentile), as used by the chart."""
    return QUINTILE_COLORS[len(QUINTILE_COLORS) - 1 - band_index(cleanliness)]


def color_for_intensity(intensity: int | float) -> str:
    """Colour on the absolute gCO2eq/kWh scale."""
    return QUINTILE_COLORS[band_index(intensity, INTENSITY_THRESHOLDS)]


def comparison_text(percentile: int) -> str:
    return "Cleaner than" if percentile <= 50 else "Dirtier than"


def display_percentile(percentile: int) -> int:
    """Share of the window the current moment beats, in the direction of comparison_text."""
    return 100 - percentile if percentile <= 50 else percentile
