"""Short-term trend of the grid intensity, from the two most recent history points."""
from __future__ import annotations

import logging
from typing import Iterable

from .const import TREND_THRESHOLD_PCT
from .models import HistoricalPoint, Trend

_LOGGER = logging.getLogger(__name__)


def percent_change(current: float, previous: float) -> float | None:
    """Change from previous to current in percent; None when previous is zero."""
    if previous == 0:
        return None
    return (current - previous) / previous * 100


def latest_pair(points: Iterable[HistoricalPoint]) -> tuple[HistoricalPoint, HistoricalPoint] | None:
    """
    Return (current, previous) picked by timestamp, whatever the input order.

    None when fewer than two points are available.
    """
    newest_first = sorted(points, key=lambda p: p.timestamp, reverse=True)
    if len(newest_first) < 2:
        return None
    return newest_first[0], newest_first[1]


def classify_trend(points: Iterable[HistoricalPoint]) -> Trend:
    pair = latest_pair(points)
    if pair is None:
        return Trend.STABLE

    current, previous = pair
    change = percent_change(current.intensity, previous.intensity)
    if change is None:
        # Undefined against a zero baseline
        _LOGGER.debug("Previous intensity is 0 at %s; reporting stable", previous.timestamp)
        return Trend.STABLE

    _LOGGER.debug(
        "Trend calculation: current %s (%s), previous %s (%s), change %.1f%%",
        current.intensity, current.timestamp.isoformat(),
        previous.intensity, previous.timestamp.isoformat(),
        change,
    )
    if change >= TREND_THRESHOLD_PCT:
        return Trend.INCREASING
    if change <= -TREND_THRESHOLD_PCT:
        return Trend.DECREASING
    return Trend.STABLE
