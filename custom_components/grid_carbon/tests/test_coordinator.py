"""
Unit tests for GridCarbonCoordinator.

Tests are grouped by the concept they exercise:
  - Initial state before the first cycle
  - Successful and failed update cycles, and the resulting update_interval
  - Credential and zone re-read from the config entry on every cycle
  - get_device_info / timeline helpers
"""

from __future__ import annotations

import unittest
from datetime import timedelta

from custom_components.grid_carbon.coordinator_data import CoordinatorData
from custom_components.grid_carbon.debug_log import EventKind
from custom_components.grid_carbon.requests import HttpResponse
from custom_components.grid_carbon.scheduler import HostStatus

from .test_common import API_KEY, ZONE, default_responses, make_coordinator, make_entry


class TestCoordinatorInit(unittest.TestCase):

    def test_initial_data_is_loading(self):
        coord, _ = make_coordinator()
        self.assertIsInstance(coord.data, CoordinatorData)
        self.assertEqual(coord.data.status, HostStatus.LOADING)
        self.assertIsNone(coord.data.snapshot)
        self.assertFalse(coord.data.has_reading)

    def test_default_interval_is_one_hour(self):
        coord, _ = make_coordinator()
        self.assertEqual(coord.update_interval, timedelta(hours=1))


class TestUpdateCycle(unittest.IsolatedAsyncioTestCase):

    async def test_success_builds_snapshot(self):
        coord, http = make_coordinator()

        data = await coord._async_update_data()

        self.assertEqual(data.status, HostStatus.READY)
        self.assertTrue(data.has_reading)
        self.assertEqual(data.snapshot.intensity, 500)
        self.assertEqual(data.snapshot.percentile, 33)
        self.assertIsNone(data.error_kind)
        self.assertEqual(len(http.calls), 3)
        self.assertEqual(coord.update_interval, timedelta(hours=1))

    async def test_failure_shortens_interval_and_keeps_snapshot(self):
        responses = default_responses()
        coord, http = make_coordinator(responses=responses)
        first = await coord._async_update_data()

        responses["/carbon-intensity/latest"] = HttpResponse(503, "down")
        data = await coord._async_update_data()

        self.assertEqual(data.status, HostStatus.STALE)
        self.assertIs(data.snapshot, first.snapshot)
        self.assertEqual(data.error_kind, "server-error")
        self.assertEqual(coord.update_interval, timedelta(minutes=5))

    async def test_interval_restored_after_recovery(self):
        responses = default_responses()
        responses["/power-breakdown/latest"] = HttpResponse(500, "")
        coord, _ = make_coordinator(responses=responses)

        data = await coord._async_update_data()
        self.assertEqual(data.status, HostStatus.UNAVAILABLE)
        self.assertTrue(data.snapshot.is_placeholder)
        self.assertEqual(coord.update_interval, timedelta(minutes=5))

        responses.update(default_responses())
        data = await coord._async_update_data()
        self.assertEqual(data.status, HostStatus.READY)
        self.assertEqual(coord.update_interval, timedelta(hours=1))

    async def test_undecodable_body_is_invalid_data_with_retry(self):
        responses = default_responses()
        coord, _ = make_coordinator(responses=responses)
        first = await coord._async_update_data()

        responses["/power-breakdown/latest"] = HttpResponse(200, b'{"x": "\xff\xfe"}')
        data = await coord._async_update_data()

        self.assertEqual(data.status, HostStatus.STALE)
        self.assertIs(data.snapshot, first.snapshot)
        self.assertEqual(data.error_kind, "invalid-data")
        self.assertEqual(coord.update_interval, timedelta(minutes=5))

    async def test_rejected_key_needs_setup(self):
        responses = default_responses()
        responses["/carbon-intensity/latest"] = HttpResponse(401, "")
        coord, _ = make_coordinator(responses=responses)

        data = await coord._async_update_data()

        self.assertEqual(data.status, HostStatus.NEEDS_SETUP)
        self.assertEqual(data.error_kind, "unauthorized")

    async def test_unknown_zone_is_config_error(self):
        responses = default_responses()
        responses["/carbon-intensity/history"] = HttpResponse(404, "")
        coord, _ = make_coordinator(responses=responses)

        data = await coord._async_update_data()

        self.assertEqual(data.status, HostStatus.CONFIG_ERROR)
        self.assertIn(ZONE, data.error_message)

    async def test_missing_key_does_not_call_api(self):
        coord, http = make_coordinator(entry=make_entry(api_key=""))

        data = await coord._async_update_data()

        self.assertEqual(data.status, HostStatus.NEEDS_SETUP)
        self.assertEqual(http.calls, [])
        self.assertEqual(coord.update_interval, timedelta(minutes=5))

    async def test_events_are_buffered(self):
        coord, _ = make_coordinator()
        await coord._async_update_data()

        messages = [e.message for e in coord.events.events]
        self.assertIn("Refresh started", messages)
        self.assertIn("Refresh succeeded", messages)
        self.assertTrue(coord.events.of_kind(EventKind.NETWORK))


class TestEntryChanges(unittest.IsolatedAsyncioTestCase):

    async def test_options_override_data(self):
        entry = make_entry(options={"api_key": "options-key", "zone": "DE"})
        coord, http = make_coordinator(entry=entry)

        await coord._async_update_data()

        _, headers, params = http.calls[0]
        self.assertEqual(headers["auth-token"], "options-key")
        self.assertEqual(params["zone"], "DE")

    async def test_key_change_used_on_next_cycle(self):
        entry = make_entry()
        coord, http = make_coordinator(entry=entry)

        await coord._async_update_data()
        entry.options = {"api_key": "rotated"}
        await coord._async_update_data()

        keys = [headers["auth-token"] for _, headers, _ in http.calls]
        self.assertEqual(keys, [API_KEY] * 3 + ["rotated"] * 3)


class TestHelpers(unittest.IsolatedAsyncioTestCase):

    def test_device_info(self):
        coord, _ = make_coordinator()
        info = coord.get_device_info()

        self.assertEqual(info["identifiers"], {("grid_carbon", "test-entry")})
        self.assertEqual(info["name"], f"Grid Carbon {ZONE}")
        self.assertEqual(info["model"], ZONE)
        self.assertEqual(info["manufacturer"], "Electricity Maps")

    async def test_timeline(self):
        coord, _ = make_coordinator()
        self.assertTrue(coord.timeline().entries[0].is_placeholder)

        await coord._async_update_data()
        timeline = coord.timeline()
        self.assertEqual(timeline.entries[0].intensity, 500)
        self.assertEqual(timeline.refresh_after, coord.scheduler.policy.next_refresh_at)
