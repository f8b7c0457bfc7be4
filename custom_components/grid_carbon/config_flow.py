"""Config flow for Grid Carbon Intensity integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import CONF_API_KEY, CONF_ENTRY_NAME, CONF_ZONE, DEFAULT_ENTRY_NAME, DEFAULT_ZONE, DOMAIN
from .coordinator_utils import entry_value, validate_credentials as _validate_credentials

# Zone identifiers look like "DE", "US-NW-PACE" or "US-CAL-CISO"
zone_validator = vol.All(cv.string, vol.Match(r"^[A-Za-z]{2}(-[A-Za-z0-9]+)*$"))

_LOGGER = logging.getLogger(__name__)
CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default=DEFAULT_ENTRY_NAME): cv.string,
                vol.Required(CONF_API_KEY, default=''): cv.string,
                vol.Required(CONF_ZONE, default=DEFAULT_ZONE): cv.string,
            }
        )


def _check_input(user_input: Dict[str, Any], errors: Dict[str, str]) -> None:
    """Fill errors for empty or malformed fields."""
    if CONF_ENTRY_NAME in user_input and not user_input[CONF_ENTRY_NAME]:
        errors['base'] = 'entry_name_required'
    if not user_input.get(CONF_API_KEY):
        errors['base'] = 'api_key_required'
    zone = user_input.get(CONF_ZONE)
    if not zone:
        errors['base'] = 'zone_required'
    else:
        try:
            zone_validator(zone)
        except vol.Invalid:
            errors['base'] = 'invalid_zone'


class GridCarbonFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            _check_input(self.data, errors)
            if not errors:
                # One entry per zone
                self._async_abort_entries_match({CONF_ZONE: self.data[CONF_ZONE]})
                error = await _validate_credentials(self.data[CONF_API_KEY], self.data[CONF_ZONE])
                if error:
                    errors['base'] = error
            if not errors:
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Lets the user replace the API key or move to another zone."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            _check_input(user_input, errors)
            if not errors:
                error = await _validate_credentials(user_input[CONF_API_KEY], user_input[CONF_ZONE])
                if error:
                    errors['base'] = error
            if not errors:
                return self.async_create_entry(
                    title="",
                    data={
                        CONF_API_KEY: user_input[CONF_API_KEY],
                        CONF_ZONE: user_input[CONF_ZONE],
                    },
                )

        OPTIONS_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_API_KEY, default=entry_value(self._entry, CONF_API_KEY, '')): cv.string,
                vol.Required(CONF_ZONE, default=entry_value(self._entry, CONF_ZONE, DEFAULT_ZONE)): cv.string,
            }
        )
        return self.async_show_form(step_id="init", data_schema=OPTIONS_SCHEMA, errors=errors)
