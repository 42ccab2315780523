"""Immutable data models for scanner results and sample outcomes.

All snapshots handed to callers are frozen dataclasses so they can be
passed between the reader thread and the caller without copying.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

# Outbound command payloads
GET_VERSION = b"y"
SINGLE = b"q"
GAIN = b"a"
TERMINATOR = b"\r"


@dataclass(frozen=True)
class ScanResult:
    """Immutable result of one completed scan.

    Attributes:
        readings: Sample readings in the order the device reported them
        duration: Scan duration reported by the device in its ``done`` frame
    """
    readings: Tuple[int, ...]
    duration: int

    def __len__(self) -> int:
        return len(self.readings)

    def inverted(self) -> ScanResult:
        """Swap the two halves of the readings.

        Corrects for a scanner mounted the other way round. The split point
        is ``len // 2``; for odd lengths the extra reading stays with the
        second half, which moves to the front.

        Example:
            >>> ScanResult((1, 2, 3, 4, 5), 10).inverted().readings
            (3, 4, 5, 1, 2)
        """
        mid = len(self.readings) // 2
        return ScanResult(
            readings=self.readings[mid:] + self.readings[:mid],
            duration=self.duration,
        )


@dataclass(frozen=True)
class DeviceInfo:
    """Firmware details learned once per connection.

    Attributes:
        version: Firmware version string from the ``version:`` frame
    """
    version: str


class SampleStatus(Enum):
    """How a sample request ended."""
    SUCCEEDED = "succeeded"
    READY = "ready"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class SampleOutcome:
    """Outcome of one request/response cycle.

    Attributes:
        status: How the cycle ended
        result: The scan result, only set when status is SUCCEEDED
        reason: Human readable explanation for FAILED / TIMEOUT
    """
    status: SampleStatus
    result: Optional[ScanResult] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is SampleStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, result: ScanResult) -> SampleOutcome:
        return cls(status=SampleStatus.SUCCEEDED, result=result)

    @classmethod
    def ready(cls) -> SampleOutcome:
        return cls(status=SampleStatus.READY)

    @classmethod
    def failed(cls, reason: str) -> SampleOutcome:
        return cls(status=SampleStatus.FAILED, reason=reason)

    @classmethod
    def timeout(cls) -> SampleOutcome:
        return cls(status=SampleStatus.TIMEOUT, reason="no response from scanner")
