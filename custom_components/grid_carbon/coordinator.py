"""
DataUpdateCoordinator for the Grid Carbon integration.

Responsibilities:
- Own the RefreshScheduler (and with it the latest snapshot) for one config entry.
- Translate the scheduler's next_refresh_at into HA's update_interval after
  every cycle, so HA's own timer drives the next attempt.
- Push a CoordinatorData value to entities at the end of every cycle
  (this is the "reload views" notification).
- Keep an in-memory debug event buffer for inspection.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .aggregator import SnapshotAggregator
from .const import DOMAIN, REFRESH_INTERVAL, VERSION
from .coordinator_data import CoordinatorData
from .coordinator_utils import EntryCredentialSource
from .debug_log import FanOutSink, LoggingEventSink, MemoryEventSink
from .requests import AiohttpClient
from .scheduler import HostStatus, RefreshScheduler, Timeline

__all__ = ["CoordinatorData", "GridCarbonCoordinator"]

_LOGGER = logging.getLogger(__name__)


class GridCarbonCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for the Grid Carbon integration.

    HA calls _async_update_data on each tick; every tick makes at most one
    aggregation attempt through the scheduler.
    """

    def __init__(self, hass: HomeAssistant, entry) -> None:
        """Initialize the coordinator from a config entry."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=REFRESH_INTERVAL),
        )
        self.events = MemoryEventSink()
        sink = FanOutSink([self.events, LoggingEventSink(_LOGGER)])

        self.aggregator = SnapshotAggregator(AiohttpClient(), sink=sink)
        self.scheduler = RefreshScheduler(
            self.aggregator.build_snapshot,
            EntryCredentialSource(entry),
            sink=sink,
            clock=dt_util.utcnow,
        )

        # Entities must handle a snapshot of None until the first cycle completes
        self.data = CoordinatorData()

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """
        Called by HA on every update_interval tick.

        Never raises for provider failures: the scheduler turns them into a
        deliverable result (last good snapshot or placeholder) and a shorter
        next interval.
        """
        result = await self.scheduler.refresh()

        policy = self.scheduler.policy
        if policy.last_attempt_at is not None and policy.next_refresh_at is not None:
            self.update_interval = policy.next_refresh_at - policy.last_attempt_at

        if result.status in (HostStatus.NEEDS_SETUP, HostStatus.CONFIG_ERROR):
            _LOGGER.error(
                "Grid carbon entry needs attention (%s): %s",
                result.status.value, result.error or "no API key configured",
            )
        elif result.error is not None:
            _LOGGER.warning(
                "Grid carbon refresh failed (%s): %s; retrying in %s",
                result.error.kind, result.error, self.update_interval,
            )

        return CoordinatorData.from_result(result)

    # ------------------------------------------------------------------
    # Host queries
    # ------------------------------------------------------------------

    def timeline(self) -> Timeline:
        return self.scheduler.timeline()

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict for this entry's zone."""
        zone = self.scheduler.snapshot_for_display().zone
        return {
            "identifiers": {(DOMAIN, self.config_entry.entry_id)},
            "name": f"Grid Carbon {zone}",
            "manufacturer": "Electricity Maps",
            "model": zone,
            "sw_version": VERSION,
        }

