"""Frame assembler for the scanner's byte stream.

The scanner wraps every message in angle brackets (``<start>``, ``<42>``,
``<done 300>``). Bytes arrive in arbitrary chunks from the reader thread;
the assembler stitches them back into frames.
"""
from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

FRAME_START = ord("<")
FRAME_END = ord(">")
CR = 0x0D
LF = 0x0A

FRAME_CAPACITY = 32  # bytes


class FrameAssembler:
    """Turns a raw byte stream into delimited frames.

    For each byte:
    - ``<`` resets the accumulator
    - ``>``, CR or LF flushes a non-empty accumulator as one frame
    - anything else is appended, up to ``capacity`` bytes

    A frame longer than ``capacity`` is a protocol error: the excess is
    dropped and the whole frame is discarded when its end marker arrives.

    Not thread-safe. Meant to run inside the connection's data callback,
    which is only ever invoked from the reader thread.
    """

    def __init__(self, on_frame: Callable[[str], None], capacity: int = FRAME_CAPACITY):
        """Initialize assembler.

        Args:
            on_frame: Called with each completed frame, decoded as ASCII
            capacity: Maximum frame length in bytes
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._on_frame = on_frame
        self._capacity = capacity
        self._buffer = bytearray()
        self._overflowed = False
        self._overflow_count = 0

    def feed(self, data: bytes) -> None:
        """Consume a chunk of newly arrived bytes."""
        for byte in data:
            if byte == FRAME_START:
                self.reset()
            elif byte in (FRAME_END, CR, LF):
                self._flush()
            elif len(self._buffer) < self._capacity:
                self._buffer.append(byte)
            else:
                self._overflowed = True

    def reset(self) -> None:
        """Drop any partially accumulated frame."""
        self._buffer.clear()
        self._overflowed = False

    @property
    def pending(self) -> bytes:
        """Bytes accumulated towards the current frame."""
        return bytes(self._buffer)

    @property
    def overflow_count(self) -> int:
        """Number of frames discarded for exceeding capacity."""
        return self._overflow_count

    def _flush(self) -> None:
        frame = bytes(self._buffer)
        overflowed = self._overflowed
        self.reset()

        if overflowed:
            self._overflow_count += 1
            logger.warning(
                f"Discarding oversized frame (> {self._capacity} bytes): {frame[:16]!r}..."
            )
        elif frame:
            self._on_frame(frame.decode("ascii", errors="replace"))
