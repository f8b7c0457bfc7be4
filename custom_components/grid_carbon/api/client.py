"""
Provider client for the Electricity Maps v3 API.

Responsible for:
- Issuing the three read calls (latest intensity, history window, power breakdown)
- Classifying HTTP statuses into the error taxonomy of api/errors.py
- Decoding response bodies into the domain models

Corresponding CURL commands:
curl 'https://api.electricitymap.org/v3/carbon-intensity/latest?zone=US-NW-PACE' -H 'auth-token: KEY'
curl 'https://api.electricitymap.org/v3/carbon-intensity/history?zone=US-NW-PACE&start=...&end=...' -H 'auth-token: KEY'
curl 'https://api.electricitymap.org/v3/power-breakdown/latest?zone=US-NW-PACE' -H 'auth-token: KEY'
"""
from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from custom_components.grid_carbon.api.errors import (
    BadRequestError,
    InvalidDataError,
    ServerError,
    UnauthorizedError,
    ZoneNotFoundError,
)
from custom_components.grid_carbon.const import (
    API_BASE_URL,
    AUTH_HEADER,
    HISTORY_WINDOW_HOURS,
    POWER_SOURCE_EMOJIS,
    UNKNOWN_EMOJI,
)
from custom_components.grid_carbon.debug_log import EventKind, EventSink, record
from custom_components.grid_carbon.models import HistoricalPoint, IntensityReading, PowerMixEntry
from custom_components.grid_carbon.requests import HttpClient, HttpResponse

_LOGGER = logging.getLogger(__name__)

BODY_EXCERPT = 500


@dataclasses.dataclass(frozen=True)
class PowerBreakdown:
    """Decoded power-breakdown payload."""

    zone: str
    entries: tuple[PowerMixEntry, ...]
    renewable_share: float | None = None
    timestamp: datetime | None = None


def parse_timestamp(value) -> datetime:
    """
    Parse a provider ISO 8601 timestamp, with or without fractional seconds.

    Naive values are taken as UTC; the result is always converted to UTC.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO 8601 string, got {value!r}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """UTC ISO 8601 without fractional seconds, as the history endpoint expects."""
    return value.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _parse_intensity(value) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"carbonIntensity must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"carbonIntensity must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"carbonIntensity must not be negative, got {value!r}")
    return int(value)


class ProviderClient:
    """
    Electricity Maps client.

    api_key is either the key itself or a callable returning it; a callable
    is asked again for every request, so a rotated key is used straight away.
    """

    def __init__(
        self,
        http: HttpClient,
        api_key: str | Callable[[], str],
        base_url: str = API_BASE_URL,
        sink: EventSink | None = None,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._sink = sink

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def fetch_current_intensity(self, zone: str) -> IntensityReading:
        response = await self._get("/carbon-intensity/latest", zone, {"zone": zone})
        payload = self._decode_json(response)
        try:
            reading = IntensityReading(
                timestamp=parse_timestamp(payload["datetime"]),
                intensity=_parse_intensity(payload["carbonIntensity"]),
                zone=str(payload["zone"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise self._invalid(response, f"latest intensity: {exc!r}") from exc

        record(
            self._sink,
            "Successfully fetched current intensity",
            details=f"Intensity: {reading.intensity} gCO2/kWh\nZone: {reading.zone}\n"
                    f"Updated: {reading.timestamp.isoformat()}",
        )
        return reading

    async def fetch_history(
        self,
        zone: str,
        window_hours: int = HISTORY_WINDOW_HOURS,
        now: datetime | None = None,
    ) -> list[HistoricalPoint]:
        """Return the look-back window, oldest point first."""
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(hours=window_hours)
        params = {"zone": zone, "start": format_timestamp(start), "end": format_timestamp(end)}

        response = await self._get("/carbon-intensity/history", zone, params)
        payload = self._decode_json(response)
        try:
            points = [
                HistoricalPoint(
                    timestamp=parse_timestamp(item["datetime"]),
                    intensity=_parse_intensity(item["carbonIntensity"]),
                    zone=str(item.get("zone", zone)),
                    is_estimated=bool(item.get("isEstimated", False)),
                    updated_at=parse_timestamp(item["updatedAt"]) if item.get("updatedAt") else None,
                )
                for item in payload["history"]
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise self._invalid(response, f"history: {exc!r}") from exc

        points.sort(key=lambda p: p.timestamp)
        record(
            self._sink,
            "Successfully fetched historical data",
            details=f"Points: {len(points)}\nTime range: {params['start']} to {params['end']}\nZone: {zone}",
        )
        return points

    async def fetch_power_breakdown(self, zone: str) -> PowerBreakdown:
        """
        Return the current generation mix as percentages of total production.

        The provider reports production per source in MW; null sources are
        skipped and the rest are normalised against their positive total.
        """
        response = await self._get("/power-breakdown/latest", zone, {"zone": zone})
        payload = self._decode_json(response)
        try:
            raw = payload["powerProductionBreakdown"]
            if not isinstance(raw, dict):
                raise TypeError("powerProductionBreakdown must be an object")
            production = {}
            for source, value in raw.items():
                if value is None:
                    continue
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise TypeError(f"{source} must be a number, got {value!r}")
                production[source] = float(value)
            renewable = payload.get("renewablePercentage")
            renewable_share = None if renewable is None else float(renewable)
            timestamp = parse_timestamp(payload["datetime"]) if payload.get("datetime") else None
        except (KeyError, TypeError, ValueError) as exc:
            raise self._invalid(response, f"power breakdown: {exc!r}") from exc

        total = sum(v for v in production.values() if v > 0)
        entries = tuple(
            PowerMixEntry(
                source=source,
                share=(value / total * 100) if total > 0 else 0.0,
                emoji=POWER_SOURCE_EMOJIS.get(source, UNKNOWN_EMOJI),
            )
            for source, value in production.items()
        )
        record(
            self._sink,
            "Successfully fetched power breakdown",
            details=f"Sources: {len(entries)}\nZone: {zone}",
        )
        return PowerBreakdown(
            zone=str(payload.get("zone", zone)),
            entries=entries,
            renewable_share=renewable_share,
            timestamp=timestamp,
        )

    async def fetch_power_mix(self, zone: str) -> list[PowerMixEntry]:
        breakdown = await self.fetch_power_breakdown(zone)
        return [e for e in breakdown.entries if e.share > 0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        # Resolved on every request; a callable is never cached
        api_key = self._api_key() if callable(self._api_key) else self._api_key
        return {"accept": "application/json", AUTH_HEADER: api_key}

    async def _get(self, path: str, zone: str, params: dict[str, str]) -> HttpResponse:
        url = self._base_url + path
        record(
            self._sink,
            "Sending request",
            EventKind.NETWORK,
            f"URL: {url}\nMethod: GET\nParams: {params}",
        )
        response = await self._http.fetch(url, self._headers(), params)
        record(
            self._sink,
            "Received response",
            EventKind.NETWORK,
            f"Status: {response.status}\nBody: {response.text[:BODY_EXCERPT]}",
        )
        self._raise_for_status(response, zone)
        return response

    def _raise_for_status(self, response: HttpResponse, zone: str) -> None:
        status = response.status
        if status == 200:
            return
        if status == 400:
            message = "Invalid request"
            try:
                body = json.loads(response.text)
                if isinstance(body, dict) and body.get("message"):
                    message = str(body["message"])
            except ValueError:
                pass
            record(self._sink, "Bad request", EventKind.ERROR, message)
            raise BadRequestError(message)
        if status == 401:
            record(self._sink, "Unauthorized", EventKind.ERROR, "Check your API key")
            raise UnauthorizedError()
        if status == 404:
            record(self._sink, "Not found", EventKind.ERROR, f"Zone {zone} not found")
            raise ZoneNotFoundError(zone)
        record(
            self._sink,
            "Server error",
            EventKind.ERROR,
            f"Status: {status}\nBody: {response.text[:BODY_EXCERPT]}",
        )
        raise ServerError(status, response.text[:BODY_EXCERPT])

    def _decode_json(self, response: HttpResponse) -> dict:
        body = response.body
        try:
            if isinstance(body, bytes):
                body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self._invalid(response, f"body is not valid UTF-8: {exc}") from exc
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise self._invalid(response, f"body is not JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise self._invalid(response, "body is not a JSON object")
        return payload

    def _invalid(self, response: HttpResponse, reason: str) -> InvalidDataError:
        excerpt = response.text[:BODY_EXCERPT]
        record(
            self._sink,
            "Failed to decode response",
            EventKind.ERROR,
            f"Status: {response.status}\nReason: {reason}\nJSON: {excerpt}",
        )
        return InvalidDataError(reason, status=response.status, body=excerpt)
