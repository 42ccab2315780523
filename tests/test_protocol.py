"""Unit tests for the frame parser and command encoding."""

import unittest

from beamscan.protocol import commands
from beamscan.protocol.parser import EventType, FrameParser


class TestFrameParser(unittest.TestCase):
    """Tests for frame classification."""

    def test_keywords(self):
        """Each keyword maps to its event type."""
        cases = {
            "home": EventType.HOME,
            "amp 12": EventType.AMP,
            "fault": EventType.FAULT,
            "limit": EventType.LIMIT,
            "start": EventType.START,
            "done 300": EventType.DONE,
            "version:1.0": EventType.VERSION,
        }
        for frame, expected in cases.items():
            with self.subTest(frame=frame):
                self.assertEqual(FrameParser.parse(frame).event_type, expected)

    def test_prefix_match(self):
        """Keywords match by prefix, as the firmware sends trailing detail."""
        self.assertEqual(FrameParser.parse("fault motor").event_type, EventType.FAULT)
        self.assertEqual(FrameParser.parse("homed").event_type, EventType.HOME)

    def test_case_sensitive(self):
        """Upper-case keywords are not recognized."""
        self.assertEqual(FrameParser.parse("START").event_type, EventType.UNKNOWN)

    def test_amp_needs_space(self):
        """'amp' without an argument is not an amp report."""
        self.assertEqual(FrameParser.parse("amp").event_type, EventType.UNKNOWN)

    def test_amp_argument(self):
        event = FrameParser.parse("amp 7")
        self.assertEqual(event.argument, "7")
        self.assertEqual(event.value, 7)

    def test_done_duration(self):
        """The done duration is parsed from the first argument."""
        event = FrameParser.parse("done 300")
        self.assertEqual(event.argument, "300")
        self.assertEqual(event.value, 300)

    def test_done_without_duration(self):
        event = FrameParser.parse("done")
        self.assertEqual(event.event_type, EventType.DONE)
        self.assertIsNone(event.value)

    def test_done_malformed_duration(self):
        event = FrameParser.parse("done abc")
        self.assertEqual(event.argument, "abc")
        self.assertIsNone(event.value)

    def test_version_text(self):
        """Everything after 'version:' is the version string."""
        event = FrameParser.parse("version:2.1 beta")
        self.assertEqual(event.argument, "2.1 beta")

    def test_readings(self):
        """Pure integers are readings."""
        for frame, value in (("0", 0), ("42", 42), ("-7", -7), ("+3", 3)):
            with self.subTest(frame=frame):
                event = FrameParser.parse(frame)
                self.assertEqual(event.event_type, EventType.READING)
                self.assertEqual(event.value, value)

    def test_unknown(self):
        """Anything else is unknown, not an error."""
        for frame in ("12a", "1.5", " 12", "id:beamscan", "-"):
            with self.subTest(frame=frame):
                event = FrameParser.parse(frame)
                self.assertEqual(event.event_type, EventType.UNKNOWN)
                self.assertEqual(event.text, frame)


class TestCommands(unittest.TestCase):
    """Tests for command payloads and wire encoding."""

    def test_encode_appends_cr(self):
        self.assertEqual(commands.encode_command(b"q"), b"q\r")

    def test_encode_empty(self):
        with self.assertRaises(ValueError):
            commands.encode_command(b"")

    def test_known_payloads(self):
        self.assertEqual(commands.version_query(), b"y")
        self.assertEqual(commands.single_sample(), b"q")

    def test_gain(self):
        """Gain is 'a' followed by one level byte."""
        self.assertEqual(commands.set_gain(5), b"a\x05")
        self.assertEqual(commands.set_gain(0), b"a\x00")
        self.assertEqual(commands.set_gain(255), b"a\xff")
        self.assertEqual(commands.encode_command(commands.set_gain(13)), b"a\x0d\r")

    def test_gain_out_of_range(self):
        for level in (-1, 256):
            with self.subTest(level=level):
                with self.assertRaises(ValueError):
                    commands.set_gain(level)


if __name__ == '__main__':
    unittest.main()
