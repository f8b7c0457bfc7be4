"""
Low-level utility functions for the Grid Carbon coordinator.

Responsibilities:
- Read the API key and zone from a config entry (options override data).
- Validate a credential/zone pair against the provider before setup.

No HA imports; config entries are only duck-typed (.data / .options).
"""
from __future__ import annotations

import logging

from .api.client import ProviderClient
from .api.errors import ProviderError, UnauthorizedError, ZoneNotFoundError
from .const import CONF_API_KEY, CONF_ZONE, DEFAULT_ZONE
from .requests import AiohttpClient, HttpClient

_LOGGER = logging.getLogger(__name__)


def entry_value(entry, key: str, default=None):
    """Return key from entry.options, falling back to entry.data, then default."""
    options = getattr(entry, "options", None) or {}
    if key in options:
        return options[key]
    data = getattr(entry, "data", None) or {}
    return data.get(key, default)


class EntryCredentialSource:
    """
    Credential/zone source backed by a config entry.

    Nothing is cached: every call re-reads the entry, so an options change
    takes effect on the next refresh cycle.
    """

    def __init__(self, entry) -> None:
        self._entry = entry

    def get_credential(self) -> str | None:
        value = entry_value(self._entry, CONF_API_KEY)
        return value or None

    def get_zone(self) -> str:
        return entry_value(self._entry, CONF_ZONE) or DEFAULT_ZONE


async def validate_credentials(
    api_key: str | None, zone: str, http: HttpClient | None = None
) -> str | None:
    """
    Try the latest-intensity endpoint with the given key and zone.

    Returns None when the pair works, otherwise an error key for the
    config flow: "api_key_required", "invalid_auth", "zone_not_found" or
    "cannot_connect". An empty key is reported without making a request.
    """
    if not api_key:
        return "api_key_required"
    client =ProviderClient(http or AiohttpClient(), api_key)
    try:
        await client.fetch_current_intensity(zone)
    except UnauthorizedError:
        return "invalid_auth"
    except ZoneNotFoundError:
        return "zone_not_found"
    except ProviderError as exc:
        _LOGGER.warning("Could not validate Electricity Maps credentials: %s", exc)
        return "cannot_connect"
    return None
