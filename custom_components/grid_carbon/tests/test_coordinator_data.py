"""Unit tests for CoordinatorData."""

from __future__ import annotations

import dataclasses
import unittest
from datetime import timedelta

from custom_components.grid_carbon.api.errors import TransportError
from custom_components.grid_carbon.coordinator_data import CoordinatorData
from custom_components.grid_carbon.scheduler import HostStatus, RefreshResult, placeholder_snapshot

from .test_common import NOW, ZONE, make_snapshot


class TestCoordinatorData(unittest.TestCase):

    def test_defaults(self):
        data = CoordinatorData()
        self.assertEqual(data.status, HostStatus.LOADING)
        self.assertIsNone(data.snapshot)
        self.assertIsNone(data.next_refresh_at)
        self.assertFalse(data.has_reading)

    def test_is_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            CoordinatorData().status = HostStatus.READY

    def test_from_successful_result(self):
        snapshot = make_snapshot()
        result = RefreshResult(HostStatus.READY, snapshot, NOW + timedelta(hours=1))

        data = CoordinatorData.from_result(result)

        self.assertIs(data.snapshot, snapshot)
        self.assertEqual(data.next_refresh_at, NOW + timedelta(hours=1))
        self.assertIsNone(data.error_kind)
        self.assertIsNone(data.error_message)
        self.assertTrue(data.has_reading)

    def test_from_failed_result(self):
        result = RefreshResult(
            HostStatus.UNAVAILABLE,
            placeholder_snapshot(ZONE, NOW),
            NOW + timedelta(minutes=5),
            TransportError("offline"),
        )

        data = CoordinatorData.from_result(result)

        self.assertEqual(data.status, HostStatus.UNAVAILABLE)
        self.assertEqual(data.error_kind, "transport-error")
        self.assertEqual(data.error_message, "offline")
        self.assertFalse(data.has_reading)
