"""Scan accumulation and sample coordination state.

ScanSession keeps mutable readings internally and produces immutable
ScanResult snapshots. PendingSample is the hand-off point between the
reader thread, which resolves it, and the caller blocked in sample().
"""
from __future__ import annotations

import threading
from typing import List, Optional

from .models import SampleOutcome, ScanResult


class ScanSession:
    """Accumulates readings between ``start`` and ``done``.

    Not locked internally; the owning dispatcher serializes access.
    """

    def __init__(self):
        self._readings: List[int] = []
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def readings(self) -> List[int]:
        return list(self._readings)

    def start(self) -> None:
        """Clear readings and begin accumulating."""
        self._readings.clear()
        self._active = True

    def add(self, value: int) -> bool:
        """Append a reading. Ignored (returns False) when not active."""
        if not self._active:
            return False
        self._readings.append(value)
        return True

    def finish(self, duration: int) -> Optional[ScanResult]:
        """Finalize the scan.

        Returns:
            ScanResult, or None if the session is inactive or has no readings.
            The session is left inactive only when a result was produced.
        """
        if not self._active or not self._readings:
            return None
        result = ScanResult(readings=tuple(self._readings), duration=duration)
        self._readings.clear()
        self._active = False
        return result

    def discard(self) -> None:
        """Abandon the scan without producing a result."""
        self._readings.clear()
        self._active = False


class PendingSample:
    """One in-flight request/response cycle.

    Resolved exactly once; later resolutions are ignored.
    """

    def __init__(self):
        self._done = threading.Event()
        self._outcome: Optional[SampleOutcome] = None

    @property
    def waiting(self) -> bool:
        return not self._done.is_set()

    @property
    def outcome(self) -> Optional[SampleOutcome]:
        return self._outcome

    def resolve(self, outcome: SampleOutcome) -> bool:
        """Complete the cycle.

        Returns:
            True if this call resolved it, False if it was already resolved.
        """
        if self._done.is_set():
            return False
        self._outcome = outcome
        self._done.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[SampleOutcome]:
        """Block until resolved or timeout elapses.

        Returns:
            The outcome, or None on timeout.
        """
        if self._done.wait(timeout):
            return self._outcome
        return None
