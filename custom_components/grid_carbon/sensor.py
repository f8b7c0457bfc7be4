"""
Platform for grid carbon sensors.

These entities are the host-side readers of the coordinator's snapshot: they
never fetch anything themselves and are refreshed whenever the coordinator
commits a new CoordinatorData value.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .chart import PercentileMap, chart_bounds
from .coordinator import GridCarbonCoordinator
from .models import Snapshot, Trend
from .recommendation import (
    Tier,
    color_for_intensity,
    comparison_text,
    display_percentile,
)
from .scheduler import HostStatus
from .trend import latest_pair, percent_change

_LOGGER = logging.getLogger(__name__)

INTENSITY_UNIT = "gCO2eq/kWh"

TREND_ICONS = {
    Trend.INCREASING: "mdi:trending-up",
    Trend.DECREASING: "mdi:trending-down",
    Trend.STABLE: "mdi:trending-neutral",
}


class GridCarbonEntity(CoordinatorEntity[GridCarbonCoordinator], SensorEntity):
    """Base class: one entity per snapshot facet, keyed on the config entry."""

    _key: str = ""
    _label: str = ""

    def __init__(self, coordinator: GridCarbonCoordinator, entry_id: str) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"grid_carbon_{entry_id}_{self._key}"
        self._attr_name = f"Grid Carbon {self._label}"

    @property
    def snapshot(self) -> Snapshot | None:
        data = self.coordinator.data
        if data is None or not data.has_reading:
            return None
        return data.snapshot

    @property
    def available(self) -> bool:
        return super().available and self.snapshot is not None

    @property
    def device_info(self):
        return self.coordinator.get_device_info()


class CarbonIntensitySensor(GridCarbonEntity):
    """Current intensity, with the history window prepared for charting."""

    _key = "intensity"
    _label = "Intensity"
    _attr_native_unit_of_measurement = INTENSITY_UNIT
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:molecule-co2"

    @property
    def native_value(self) -> int | None:
        snapshot = self.snapshot
        return snapshot.intensity if snapshot else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        percentiles = PercentileMap.from_history(snapshot.history)
        bounds = chart_bounds(snapshot.history)
        return {
            "zone": snapshot.zone,
            "updated_at": snapshot.reading.timestamp.isoformat(),
            "color": color_for_intensity(snapshot.intensity),
            "history_min": bounds[0] if bounds else None,
            "history_max": bounds[1] if bounds else None,
            "history": [
                {
                    "datetime": point.timestamp.isoformat(),
                    "intensity": point.intensity,
                    "estimated": point.is_estimated,
                    "percentile": percentile,
                    "color": color,
                }
                for point, percentile, color in percentiles.classify(snapshot.history)
            ],
        }


class PercentileSensor(GridCarbonEntity):
    """Rank of the current reading within the last 24 hours (lower is cleaner)."""

    _key = "percentile"
    _label = "Percentile"
    _attr_native_unit_of_measurement = "%"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:percent"

    @property
    def native_value(self) -> int | None:
        snapshot = self.snapshot
        return snapshot.percentile if snapshot else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        return {
            "cleanliness": snapshot.cleanliness,
            "comparison": f"{comparison_text(snapshot.percentile)} {display_percentile(snapshot.percentile)}% of the last 24h",
            "emoji": snapshot.emoji,
        }


class RecommendationSensor(GridCarbonEntity):
    _key = "recommendation"
    _label = "Recommendation"
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [tier.value for tier in Tier]

    @property
    def native_value(self) -> str | None:
        snapshot = self.snapshot
        return snapshot.recommendation.tier.value if snapshot else None

    @property
    def icon(self) -> str:
        snapshot = self.snapshot
        return snapshot.recommendation.icon if snapshot else "mdi:help-circle"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        recommendation = snapshot.recommendation
        return {
            "title": recommendation.title,
            "message": f"{snapshot.emoji} {recommendation.message}",
            "color": recommendation.color,
        }


class TrendSensor(GridCarbonEntity):
    _key = "trend"
    _label = "Trend"
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [trend.value for trend in Trend]

    @property
    def native_value(self) -> str | None:
        snapshot = self.snapshot
        return snapshot.trend.value if snapshot else None

    @property
    def icon(self) -> str:
        snapshot = self.snapshot
        return TREND_ICONS[snapshot.trend] if snapshot else "mdi:trending-neutral"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        pair = latest_pair(snapshot.history)
        if pair is None:
            return {"change_pct": None}
        change = percent_change(pair[0].intensity, pair[1].intensity)
        return {"change_pct": None if change is None else round(change, 1)}


class RenewableShareSensor(GridCarbonEntity):
    """Renewable share of current production, with the full power mix as attributes."""

    _key = "renewable_share"
    _label = "Renewable Share"
    _attr_native_unit_of_measurement = "%"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:wind-turbine"

    @property
    def native_value(self) -> float | None:
        snapshot = self.snapshot
        if snapshot is None or snapshot.renewable_share is None:
            return None
        return round(snapshot.renewable_share, 1)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        return {
            "power_mix": [
                {"source": e.source, "share": round(e.share, 1), "emoji": e.emoji}
                for e in snapshot.power_mix
            ]
        }


class RefreshStatusSensor(GridCarbonEntity):
    """Host status plus the scheduled next refresh; available even without a reading."""

    _key = "status"
    _label = "Status"
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [status.value for status in HostStatus]
    _attr_icon = "mdi:cloud-sync"

    @property
    def available(self) -> bool:
        return self.coordinator.last_update_success

    @property
    def native_value(self) -> str:
        data = self.coordinator.data
        return data.status.value if data is not None else HostStatus.LOADING.value

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self.coordinator.data
        if data is None:
            return {}
        return {
            "next_refresh": data.next_refresh_at.isoformat() if data.next_refresh_at else None,
            "error_kind": data.error_kind,
            "error": data.error_message,
        }


class NextRefreshSensor(GridCarbonEntity):
    _key = "next_refresh"
    _label = "Next Refresh"
    _attr_device_class = SensorDeviceClass.TIMESTAMP
    _attr_icon = "mdi:clock-outline"

    @property
    def available(self) -> bool:
        return self.coordinator.last_update_success

    @property
    def native_value(self):
        data = self.coordinator.data
        return data.next_refresh_at if data is not None else None


SENSOR_TYPES = (
    CarbonIntensitySensor,
    PercentileSensor,
    RecommendationSensor,
    TrendSensor,
    RenewableShareSensor,
    RefreshStatusSensor,
    NextRefreshSensor,
)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for the passed config_entry in HA."""
    coordinator: GridCarbonCoordinator = config_entry.runtime_data
    entities = [cls(coordinator, config_entry.entry_id) for cls in SENSOR_TYPES]
    _LOGGER.debug("Adding %s grid carbon sensors", len(entities))
    async_add_entities(entities)
