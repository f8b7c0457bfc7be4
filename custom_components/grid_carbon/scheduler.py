"""
Refresh scheduling for the Grid Carbon integration.

Responsibilities:
- Run at most one snapshot fetch per trigger, bounded by a timeout.
- Own the single "last committed snapshot" slot and the RefreshPolicy;
  both are replaced as whole objects, never mutated field by field.
- Decide when the next refresh should happen: the full interval after a
  success, the shorter retry interval after a failure.
- Answer point-in-time and timeline queries for the host.

There is no internal retry loop. Recovery cadence is governed by the host
calling refresh() again at next_refresh_at.

Pure asyncio, no HA dependencies.
"""
from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Protocol

from .api.errors import (
    BadRequestError,
    ProviderError,
    TransportError,
    UnauthorizedError,
    ZoneNotFoundError,
)
from .const import DEFAULT_ZONE, REFRESH_INTERVAL, REFRESH_TIMEOUT, RETRY_INTERVAL
from .debug_log import EventKind, EventSink, record
from .models import IntensityReading, Outcome, RefreshPolicy, Snapshot

_LOGGER = logging.getLogger(__name__)

FetchSnapshot = Callable[[str, str, datetime], Awaitable[Snapshot]]
SnapshotListener = Callable[[Snapshot], None]


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    FAILED = "failed"


class HostStatus(str, enum.Enum):
    """What the host should show; each value drives a different prompt."""

    LOADING = "loading"            # never loaded yet, first attempt pending or running
    READY = "ready"                # latest attempt succeeded
    STALE = "stale"                # latest attempt failed transiently, last good snapshot shown
    UNAVAILABLE = "unavailable"    # failed and nothing was ever loaded (placeholder shown)
    NEEDS_SETUP = "needs_setup"    # no API key, or the provider rejected it
    CONFIG_ERROR = "config_error"  # zone unknown or request rejected


class CredentialSource(Protocol):
    """Read on every cycle; either value may change between cycles."""

    def get_credential(self) -> str | None:
        ...

    def get_zone(self) -> str:
        ...


@dataclasses.dataclass(frozen=True)
class RefreshResult:
    status: HostStatus
    snapshot: Snapshot
    next_refresh_at: datetime
    error: ProviderError | None = None


@dataclasses.dataclass(frozen=True)
class Timeline:
    """Entries to render now, and when the host should ask again."""

    entries: tuple[Snapshot, ...]
    refresh_after: datetime


def placeholder_snapshot(zone: str, now: datetime) -> Snapshot:
    """Neutral snapshot, clearly marked, for hosts that must render something."""
    return Snapshot(
        captured_at=now,
        reading=IntensityReading(timestamp=now, intensity=0, zone=zone),
        zone=zone,
        is_placeholder=True,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def status_for_error(error: ProviderError, has_snapshot: bool) -> HostStatus:
    if isinstance(error, UnauthorizedError):
        return HostStatus.NEEDS_SETUP
    if isinstance(error, (ZoneNotFoundError, BadRequestError)):
        return HostStatus.CONFIG_ERROR
    return HostStatus.STALE if has_snapshot else HostStatus.UNAVAILABLE


class RefreshScheduler:
    """Single-writer owner of the latest snapshot for one zone."""

    def __init__(
        self,
        fetch_snapshot: FetchSnapshot,
        credential_source: CredentialSource,
        *,
        refresh_interval: int = REFRESH_INTERVAL,
        retry_interval: int = RETRY_INTERVAL,
        timeout: float = REFRESH_TIMEOUT,
        sink: EventSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetch_snapshot = fetch_snapshot
        self._source = credential_source
        self._refresh_interval = timedelta(seconds=refresh_interval)
        self._retry_interval = timedelta(seconds=retry_interval)
        self._timeout = timeout
        self._sink = sink
        self._clock = clock

        self._state = SchedulerState.IDLE
        self._status = HostStatus.LOADING
        self._latest: Snapshot | None = None
        self._policy = RefreshPolicy(backoff_seconds=retry_interval)
        self._last_error: ProviderError | None = None
        self._zone: str | None = None
        self._in_flight = False
        self._listeners: list[SnapshotListener] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def latest(self) -> Snapshot | None:
        """Last committed snapshot, or None if nothing was ever loaded."""
        return self._latest

    @property
    def policy(self) -> RefreshPolicy:
        return self._policy

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def status(self) -> HostStatus:
        if self._in_flight and self._latest is None:
            return HostStatus.LOADING
        return self._status

    @property
    def last_error(self) -> ProviderError | None:
        return self._last_error

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def snapshot_for_display(self, now: datetime | None = None) -> Snapshot:
        """Latest committed snapshot, or a placeholder if none exists yet."""
        if self._latest is not None:
            return self._latest
        return placeholder_snapshot(self._zone or self._source.get_zone() or DEFAULT_ZONE, now or self._clock())

    def timeline(self, now: datetime | None = None) -> Timeline:
        now = now or self._clock()
        refresh_after = self._policy.next_refresh_at or now
        return Timeline(entries=(self.snapshot_for_display(now),), refresh_after=refresh_after)

    def seconds_until_refresh(self, now: datetime | None = None) -> float:
        """Seconds until next_refresh_at, never negative; 0 when nothing is scheduled."""
        if self._policy.next_refresh_at is None:
            return 0.0
        now = now or self._clock()
        return max(0.0, (self._policy.next_refresh_at - now).total_seconds())

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call listener with every newly committed snapshot; returns a remover."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    async def refresh(self, now: datetime | None = None) -> RefreshResult:
        """
        Make at most one fetch attempt and reschedule.

        A call made while another attempt is running returns the current
        snapshot with status loading, without fetching.
        """
        now = now or self._clock()

        if self._in_flight:
            record(self._sink, "Refresh skipped: already in flight")
            return RefreshResult(
                status=HostStatus.LOADING,
                snapshot=self.snapshot_for_display(now),
                next_refresh_at=self._policy.next_refresh_at or now,
                error=self._last_error,
            )

        zone = self._source.get_zone() or DEFAULT_ZONE
        if zone != self._zone:
            if self._zone is not None:
                _LOGGER.debug("Zone changed from %s to %s; dropping previous snapshot", self._zone, zone)
                self._latest = None
                self._status = HostStatus.LOADING
            self._zone = zone

        credential = self._source.get_credential()
        if not credential:
            record(self._sink, "No API key configured", EventKind.ERROR)
            self._last_error = None
            self._state = SchedulerState.FAILED
            self._status = HostStatus.NEEDS_SETUP
            self._reschedule(now, Outcome.FAILURE)
            return self._result(now)

        self._in_flight = True
        self._state = SchedulerState.FETCHING
        record(self._sink, "Refresh started", EventKind.NETWORK, f"Zone: {zone}")
        try:
            snapshot = await asyncio.wait_for(
                self._fetch_snapshot(zone, credential, now), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            self._on_failure(
                now, TransportError(f"Refresh exceeded {self._timeout:g}s timeout")
            )
        except ProviderError as exc:
            self._on_failure(now, exc)
        except Exception as exc:  # noqa: BLE001
            # Anything outside the taxonomy still ends the cycle as a failure
            _LOGGER.exception("Unexpected error while refreshing zone %s", zone)
            self._on_failure(now, ProviderError(f"Unexpected error: {exc!r}"))
        else:
            self._on_success(now, snapshot)
        finally:
            self._in_flight = False

        return self._result(now)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _on_success(self, now: datetime, snapshot: Snapshot) -> None:
        # Single reference assignment: readers see the old snapshot or the new one
        self._latest = snapshot
        self._last_error = None
        self._state = SchedulerState.SUCCESS
        self._status = HostStatus.READY
        self._reschedule(now, Outcome.SUCCESS)
        record(
            self._sink,
            "Refresh succeeded",
            details=f"Intensity: {snapshot.intensity} gCO2/kWh\nPercentile: {snapshot.percentile}\n"
                    f"Trend: {snapshot.trend.value}\nNext refresh: {self._policy.next_refresh_at.isoformat()}",
        )
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning("Snapshot listener failed: %s", exc)

    def _on_failure(self, now: datetime, error: ProviderError) -> None:
        self._last_error = error
        self._state = SchedulerState.FAILED
        self._status = status_for_error(error, self._latest is not None)
        self._reschedule(now, Outcome.FAILURE)
        record(
            self._sink,
            "Refresh failed",
            EventKind.ERROR,
            f"Kind: {error.kind}\nError: {error}\nRetry at: {self._policy.next_refresh_at.isoformat()}",
        )

    def _reschedule(self, now: datetime, outcome: Outcome) -> None:
        interval = self._refresh_interval if outcome is Outcome.SUCCESS else self._retry_interval
        self._policy = RefreshPolicy(
            last_attempt_at=now,
            next_refresh_at=now + interval,
            last_outcome=outcome,
            backoff_seconds=int(self._retry_interval.total_seconds()),
        )

    def _result(self, now: datetime) -> RefreshResult:
        return RefreshResult(
            status=self.status,
            snapshot=self.snapshot_for_display(now),
            next_refresh_at=self._policy.next_refresh_at,
            error=self._last_error,
        )
