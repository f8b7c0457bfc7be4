"""
Domain models for the Grid Carbon integration.

This module contains pure data classes representing provider entities and
the aggregated snapshot. These classes have no dependencies on HTTP, API
logic, or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import enum
from datetime import datetime

from .const import NEUTRAL_PERCENTILE, UNKNOWN_EMOJI
from .recommendation import Recommendation, emoji_for_percentile, recommendation_for_percentile


class Trend(str, enum.Enum):
    """Short-term direction of the grid intensity."""

    INCREASING = "increasing"   # getting dirtier
    DECREASING = "decreasing"   # getting cleaner
    STABLE = "stable"


class Outcome(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclasses.dataclass(frozen=True)
class IntensityReading:
    """Current carbon intensity for a zone, in gCO2eq/kWh."""

    timestamp: datetime
    intensity: int
    zone: str
    # None until the aggregator ranks the reading against history
    percentile: int | None = None

    def with_percentile(self, percentile: int) -> IntensityReading:
        return dataclasses.replace(self, percentile=percentile)

    @property
    def percentile_or_default(self) -> int:
        return NEUTRAL_PERCENTILE if self.percentile is None else self.percentile


@dataclasses.dataclass(frozen=True)
class HistoricalPoint:
    """Single hourly point of the look-back window."""

    timestamp: datetime
    intensity: int
    zone: str
    is_estimated: bool = False
    updated_at: datetime | None = None


@dataclasses.dataclass(frozen=True)
class PowerMixEntry:
    """Share of current generation for one source, as a percentage."""

    source: str
    share: float
    emoji: str = UNKNOWN_EMOJI


@dataclasses.dataclass(frozen=True)
class Snapshot:
    """
    Fully-formed result of one refresh cycle.

    Owns its collections (tuples), so a committed snapshot can be shared
    with any number of readers without copying.
    """

    captured_at: datetime
    reading: IntensityReading
    history: tuple[HistoricalPoint, ...] = ()
    power_mix: tuple[PowerMixEntry, ...] = ()
    trend: Trend = Trend.STABLE
    zone: str = ""
    renewable_share: float | None = None
    is_placeholder: bool = False

    @property
    def intensity(self) -> int:
        return self.reading.intensity

    @property
    def percentile(self) -> int:
        return self.reading.percentile_or_default

    @property
    def cleanliness(self) -> int:
        """Inverted percentile: higher means cleaner."""
        return 100 - self.percentile

    @property
    def recommendation(self) -> Recommendation:
        return recommendation_for_percentile(self.percentile)

    @property
    def emoji(self) -> str:
        if self.is_placeholder:
            return UNKNOWN_EMOJI
        return emoji_for_percentile(self.cleanliness)


@dataclasses.dataclass(frozen=True)
class RefreshPolicy:
    """
    Refresh bookkeeping for one zone.

    Replaced as a whole by the scheduler at the end of every attempt.
    """

    last_attempt_at: datetime | None = None
    next_refresh_at: datetime | None = None
    last_outcome: Outcome | None = None
    backoff_seconds: int = 0
