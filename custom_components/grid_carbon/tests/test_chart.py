"""Unit tests for chart.py."""

from __future__ import annotations

import unittest

from custom_components.grid_carbon.chart import PercentileMap, chart_bounds

from .test_common import make_points


class TestPercentileMap(unittest.TestCase):

    def setUp(self):
        self.points = make_points([100, 200, 200, 400])
        self.percentiles = PercentileMap.from_history(self.points)

    def test_share_at_or_below(self):
        self.assertEqual(self.percentiles.percentile_for(100), 25)
        self.assertEqual(self.percentiles.percentile_for(200), 75)
        self.assertEqual(self.percentiles.percentile_for(400), 100)

    def test_unknown_value_is_neutral(self):
        self.assertEqual(self.percentiles.percentile_for(999), 50)
        self.assertEqual(PercentileMap.from_history([]).percentile_for(100), 50)

    def test_colors(self):
        cleanest, *_, dirtiest = self.points
        self.assertEqual(self.percentiles.color_for(cleanest), "#5DB529")
        self.assertEqual(self.percentiles.color_for(dirtiest), "#DC1409")

    def test_classify_keeps_order(self):
        rows = list(self.percentiles.classify(self.points))
        self.assertEqual([point for point, _, _ in rows], self.points)
        self.assertEqual([pct for _, pct, _ in rows], [25, 75, 75, 100])


class TestChartBounds(unittest.TestCase):

    def test_bounds(self):
        self.assertEqual(chart_bounds(make_points([300, 120, 450])), (120, 450))

    def test_empty(self):
        self.assertIsNone(chart_bounds([]))
