"""
Snapshot aggregation for the Grid Carbon integration.

Responsibilities:
- Fan out the three provider calls concurrently and join them into one Snapshot.
- Rank the current reading against the history window (percentile).
- Post-process the power mix for presentation.

All-or-nothing: if any of the three calls fails the others are cancelled and
the error propagates; no partial snapshot is ever built.
"""
from __future__ import annotations

import asyncio
import bisect
import logging
import time
from datetime import datetime, timezone
from typing import Iterable

from .api.client import PowerBreakdown, ProviderClient
from .const import API_BASE_URL, HISTORY_WINDOW_HOURS, NEUTRAL_PERCENTILE, POWER_SOURCE_EMOJIS, UNKNOWN_EMOJI
from .debug_log import EventKind, EventSink, record
from .models import HistoricalPoint, IntensityReading, PowerMixEntry, Snapshot
from .requests import HttpClient
from .trend import classify_trend

_LOGGER = logging.getLogger(__name__)


def percentile_rank(value: int, history: Iterable[int]) -> int:
    """
    Rank value against history; lower means cleaner.

    floor(i / n * 100) where i is the first index of the ascending history
    whose value is >= value. 100 when value exceeds every historical value,
    50 when there is no history.
    """
    ordered = sorted(history)
    if not ordered:
        return NEUTRAL_PERCENTILE
    index = bisect.bisect_left(ordered, value)
    if index == len(ordered):
        return 100
    return index * 100 // len(ordered)


def prepare_power_mix(entries: Iterable[PowerMixEntry]) -> tuple[PowerMixEntry, ...]:
    """Drop non-positive shares, fill in emojis, largest share first (stable on ties)."""
    kept = [
        e if e.emoji != UNKNOWN_EMOJI else PowerMixEntry(
            e.source, e.share, POWER_SOURCE_EMOJIS.get(e.source, UNKNOWN_EMOJI)
        )
        for e in entries
        if e.share > 0
    ]
    return tuple(sorted(kept, key=lambda e: e.share, reverse=True))


async def build_snapshot(
    client: ProviderClient,
    zone: str,
    *,
    window_hours: int = HISTORY_WINDOW_HOURS,
    now: datetime | None = None,
    sink: EventSink | None = None,
) -> Snapshot:
    """Fetch the three series for zone concurrently and build a Snapshot."""
    captured_at = now or datetime.now(timezone.utc)
    started = time.monotonic()

    tasks = [
        asyncio.ensure_future(client.fetch_current_intensity(zone)),
        asyncio.ensure_future(client.fetch_history(zone, window_hours, captured_at)),
        asyncio.ensure_future(client.fetch_power_breakdown(zone)),
    ]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    reading: IntensityReading = results[0]
    history: list[HistoricalPoint] = results[1]
    breakdown: PowerBreakdown = results[2]
    fetched = time.monotonic()

    percentile = percentile_rank(reading.intensity, (p.intensity for p in history))
    snapshot = Snapshot(
        captured_at=captured_at,
        reading=reading.with_percentile(percentile),
        history=tuple(sorted(history, key=lambda p: p.timestamp)),
        power_mix=prepare_power_mix(breakdown.entries),
        trend=classify_trend(history),
        zone=reading.zone or zone,
        renewable_share=breakdown.renewable_share,
    )

    record(
        sink,
        "Data processing complete",
        EventKind.NETWORK,
        f"Concurrent await time: {fetched - started:.2f}s\n"
        f"Processing time: {time.monotonic() - fetched:.2f}s\n"
        f"Historical points: {len(snapshot.history)}\n"
        f"Power sources: {len(snapshot.power_mix)}\n"
        f"Percentile: {percentile}",
    )
    return snapshot


class SnapshotAggregator:
    """Builds a snapshot for a zone and credential, one provider client per call."""

    def __init__(
        self,
        http: HttpClient,
        *,
        window_hours: int = HISTORY_WINDOW_HOURS,
        base_url: str = API_BASE_URL,
        sink: EventSink | None = None,
    ) -> None:
        self._http = http
        self._window_hours = window_hours
        self._base_url = base_url
        self._sink = sink

    async def build_snapshot(
        self, zone: str, credential: str, now: datetime | None = None
    ) -> Snapshot:
        client = ProviderClient(self._http, credential, self._base_url, sink=self._sink)
        return await build_snapshot(
            client, zone, window_hours=self._window_hours, now=now, sink=self._sink
        )
