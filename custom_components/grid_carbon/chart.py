"""
Percentile support for charting a history window.

Precomputes intensity -> percentile once per series so that colouring every
bar of a chart is a dictionary lookup.
"""
from __future__ import annotations

import bisect
import dataclasses
from typing import Iterable, Iterator

from .const import NEUTRAL_PERCENTILE
from .models import HistoricalPoint
from .recommendation import color_for_percentile


@dataclasses.dataclass(frozen=True)
class PercentileMap:
    """intensity -> share (0-100) of the series at or below that intensity."""

    percentiles: dict[int, int] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_history(cls, points: Iterable[HistoricalPoint]) -> PercentileMap:
        values = sorted(p.intensity for p in points)
        total = len(values)
        if total == 0:
            return cls()
        return cls(
            {
                value: bisect.bisect_right(values, value) * 100 // total
                for value in set(values)
            }
        )

    def percentile_for(self, intensity: int) -> int:
        return self.percentiles.get(intensity, NEUTRAL_PERCENTILE)

    def color_for(self, point: HistoricalPoint) -> str:
        return color_for_percentile(100 - self.percentile_for(point.intensity))

    def classify(
        self, points: Iterable[HistoricalPoint]
    ) -> Iterator[tuple[HistoricalPoint, int, str]]:
        for point in points:
            yield point, self.percentile_for(point.intensity), self.color_for(point)


def chart_bounds(points: Iterable[HistoricalPoint]) -> tuple[int, int] | None:
    """(min, max) intensity of a series, or None when it is empty."""
    values = [p.intensity for p in points]
    if not values:
        return None
    return min(values), max(values)
