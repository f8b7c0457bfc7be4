"""Unit tests for debug_log.py event sinks."""

from __future__ import annotations

import logging
import unittest
from unittest.mock import MagicMock

from custom_components.grid_carbon.debug_log import (
    DebugEvent,
    EventKind,
    FanOutSink,
    LoggingEventSink,
    MemoryEventSink,
    record,
)


class TestMemoryEventSink(unittest.TestCase):

    def test_records_in_order(self):
        sink = MemoryEventSink()
        record(sink, "first")
        record(sink, "second", EventKind.ERROR, "details")

        self.assertEqual([e.message for e in sink.events], ["first", "second"])
        self.assertEqual(sink.events[1].kind, EventKind.ERROR)
        self.assertEqual(sink.events[1].details, "details")
        self.assertIsNotNone(sink.events[0].timestamp.tzinfo)

    def test_bounded(self):
        sink = MemoryEventSink(limit=3)
        for i in range(5):
            record(sink, f"event {i}")
        self.assertEqual([e.message for e in sink.events], ["event 2", "event 3", "event 4"])

    def test_of_kind_and_clear(self):
        sink = MemoryEventSink()
        record(sink, "a", EventKind.NETWORK)
        record(sink, "b", EventKind.ERROR)
        self.assertEqual([e.message for e in sink.of_kind(EventKind.NETWORK)], ["a"])
        sink.clear()
        self.assertEqual(sink.events, [])


class TestOtherSinks(unittest.TestCase):

    def test_record_without_sink_is_noop(self):
        record(None, "nothing happens")

    def test_fan_out(self):
        first, second = MemoryEventSink(), MemoryEventSink()
        record(FanOutSink([first, second]), "hello")
        self.assertEqual(len(first.events), 1)
        self.assertEqual(len(second.events), 1)

    def test_logging_levels(self):
        logger = MagicMock(spec=logging.Logger)
        sink = LoggingEventSink(logger)

        sink.record(DebugEvent("boom", EventKind.ERROR, "details"))
        sink.record(DebugEvent("fine"))

        first, second = logger.log.call_args_list
        self.assertEqual(first.args[0], logging.WARNING)
        self.assertEqual(second.args[0], logging.DEBUG)
