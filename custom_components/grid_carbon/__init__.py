import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import CONF_API_KEY, CONF_ZONE, DEFAULT_ZONE, DOMAIN
from .coordinator import GridCarbonCoordinator
from .coordinator_utils import entry_value, validate_credentials as _validate_credentials

PLATFORMS: list[Platform] = [Platform.SENSOR]
_LOGGER = logging.getLogger(__name__)


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    api_key = entry_value(entry, CONF_API_KEY)
    zone = entry_value(entry, CONF_ZONE, DEFAULT_ZONE)

    if not api_key:
        # Nothing to validate; the coordinator reports needs_setup without any request
        _LOGGER.error("No Electricity Maps API key configured for %s", entry.title)
        error = None
    else:
        error = await _validate_credentials(api_key, zone)
    if error == "invalid_auth":
        raise ConfigEntryNotReady("Electricity Maps rejected the configured API key credentials")
    if error == "zone_not_found":
        raise ConfigEntryNotReady(f"Electricity Maps does not know zone {zone}")
    if error is not None:
        raise ConfigEntryNotReady("Cannot reach the Electricity Maps API")

    coordinator = GridCarbonCoordinator(hass, entry)
    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # API key and zone are re-read on every cycle; just don't wait an hour for it.
    await config_entry.runtime_data.async_request_refresh()


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    return await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
