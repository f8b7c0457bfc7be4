"""
Real API integration tests for the Electricity Maps client and aggregator.
Requires the ELECTRICITYMAPS_API_KEY environment variable to run
(ELECTRICITYMAPS_ZONE optionally selects the zone).
Skip with:  pytest -k "not Integration"
"""

from __future__ import annotations

import os
import unittest

from dotenv import load_dotenv

from custom_components.grid_carbon.aggregator import SnapshotAggregator
from custom_components.grid_carbon.const import DEFAULT_ZONE
from custom_components.grid_carbon.coordinator_utils import validate_credentials
from custom_components.grid_carbon.requests import AiohttpClient


class TestElectricityMapsIntegration(unittest.IsolatedAsyncioTestCase):
    """
    Integration tests that hit the real Electricity Maps API.
    Skipped automatically when ELECTRICITYMAPS_API_KEY is not set.
    """

    def setUp(self):
        load_dotenv()
        self.api_key = os.getenv("ELECTRICITYMAPS_API_KEY")
        self.zone = os.getenv("ELECTRICITYMAPS_ZONE") or DEFAULT_ZONE
        if not self.api_key:
            self.skipTest("ELECTRICITYMAPS_API_KEY not set, skipping integration tests")

    async def test_credentials_are_valid(self):
        self.assertIsNone(await validate_credentials(self.api_key, self.zone))

    async def test_wrong_key_is_rejected(self):
        self.assertEqual(await validate_credentials("not-a-real-key", self.zone), "invalid_auth")

    async def test_build_snapshot(self):
        snapshot = await SnapshotAggregator(AiohttpClient()).build_snapshot(self.zone, self.api_key)

        self.assertEqual(snapshot.zone, self.zone)
        self.assertGreaterEqual(snapshot.intensity, 0)
        self.assertTrue(0 <= snapshot.percentile <= 100)
        self.assertGreater(len(snapshot.history), 0)
        timestamps = [p.timestamp for p in snapshot.history]
        self.assertEqual(timestamps, sorted(timestamps))
