"""Unit tests for FrameAssembler."""

import unittest

from beamscan.protocol.frames import FrameAssembler, FRAME_CAPACITY


class TestFrameAssembler(unittest.TestCase):
    """Tests for turning byte chunks into frames."""

    def setUp(self):
        self.frames = []
        self.assembler = FrameAssembler(self.frames.append)

    def test_single_frame(self):
        """Bytes between < and > form one frame."""
        self.assembler.feed(b"<start>")
        self.assertEqual(self.frames, ["start"])

    def test_frame_split_across_chunks(self):
        """A frame may arrive in several chunks."""
        self.assembler.feed(b"<do")
        self.assembler.feed(b"ne 3")
        self.assertEqual(self.frames, [])
        self.assembler.feed(b"00>")
        self.assertEqual(self.frames, ["done 300"])

    def test_multiple_frames_in_one_chunk(self):
        """Several frames in one chunk are delivered in order."""
        self.assembler.feed(b"<start><5><12><done 300>")
        self.assertEqual(self.frames, ["start", "5", "12", "done 300"])

    def test_cr_and_lf_end_frames(self):
        """CR and LF terminate a frame just like >."""
        self.assembler.feed(b"<5\r<6\n7\r\n")
        self.assertEqual(self.frames, ["5", "6", "7"])

    def test_empty_spans_not_delivered(self):
        """Empty frames and repeated terminators produce nothing."""
        self.assembler.feed(b"<>\r\n>>\r\r<>")
        self.assertEqual(self.frames, [])

    def test_start_marker_discards_partial_frame(self):
        """A start marker throws away what was accumulated so far."""
        self.assembler.feed(b"garbage<home>")
        self.assertEqual(self.frames, ["home"])

    def test_frame_without_start_marker(self):
        """Bytes after a reset are a frame even without a leading <."""
        self.assembler.feed(b"version:1.2\r\n")
        self.assertEqual(self.frames, ["version:1.2"])

    def test_pending_bytes(self):
        """Partial frames are visible and cleared by reset()."""
        self.assembler.feed(b"<12")
        self.assertEqual(self.assembler.pending, b"12")
        self.assembler.reset()
        self.assertEqual(self.assembler.pending, b"")
        self.assembler.feed(b">")
        self.assertEqual(self.frames, [])

    def test_callback_exception_does_not_leave_stale_bytes(self):
        """A failing consumer does not cause the frame to be re-delivered."""
        calls = []

        def bad_consumer(frame):
            calls.append(frame)
            if len(calls) == 1:
                raise ValueError("boom")

        assembler = FrameAssembler(bad_consumer)
        with self.assertRaises(ValueError):
            assembler.feed(b"<1>")
        self.assertEqual(assembler.pending, b"")
        assembler.feed(b"<2>")
        self.assertEqual(calls, ["1", "2"])

    def test_non_ascii_bytes_replaced(self):
        """Undecodable bytes do not raise."""
        self.assembler.feed(b"<\xff1>")
        self.assertEqual(len(self.frames), 1)
        self.assertTrue(self.frames[0].endswith("1"))

    def test_invalid_capacity(self):
        """Capacity must be positive."""
        with self.assertRaises(ValueError):
            FrameAssembler(self.frames.append, capacity=0)


class TestFrameAssemblerOverflow(unittest.TestCase):
    """Frames longer than capacity are discarded as protocol errors."""

    def setUp(self):
        self.frames = []
        self.assembler = FrameAssembler(self.frames.append, capacity=4)

    def test_default_capacity(self):
        """The scanner's frame buffer holds 32 bytes."""
        self.assertEqual(FRAME_CAPACITY, 32)

    def test_frame_at_capacity_delivered(self):
        """A frame of exactly capacity bytes is fine."""
        self.assembler.feed(b"<1234>")
        self.assertEqual(self.frames, ["1234"])

    def test_oversized_frame_discarded(self):
        """A frame exceeding capacity is dropped entirely."""
        with self.assertLogs("beamscan.protocol.frames", level="WARNING"):
            self.assembler.feed(b"<12345>")
        self.assertEqual(self.frames, [])
        self.assertEqual(self.assembler.overflow_count, 1)

    def test_recovers_after_overflow(self):
        """The next frame after an overflow is delivered normally."""
        self.assembler.feed(b"<123456789><42>")
        self.assertEqual(self.frames, ["42"])

    def test_start_marker_clears_overflow(self):
        """A new start marker abandons the oversized frame without an end marker."""
        self.assembler.feed(b"<123456<7>")
        self.assertEqual(self.frames, ["7"])
        self.assertEqual(self.assembler.overflow_count, 0)


if __name__ == '__main__':
    unittest.main()
