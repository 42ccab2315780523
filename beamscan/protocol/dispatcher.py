"""Response dispatcher that applies parsed frames to scan state.

Runs on the reader thread. Everything it touches (scan session, pending
sample, device info, latest result) is shared with the caller's thread
and guarded by a single lock.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from ..errors import SampleInProgressError
from ..models import DeviceInfo, SampleOutcome, ScanResult
from ..session import PendingSample, ScanSession
from .parser import EventType, FrameParser, ResponseEvent

logger = logging.getLogger(__name__)


class ResponseDispatcher:
    """Classifies frames and updates session state accordingly.

    Side effects of a frame are limited to log records, ScanSession
    mutation, PendingSample resolution and, for ``fault`` only, the
    teardown callback. Never blocks.
    """

    def __init__(self, on_fault: Optional[Callable[[], None]] = None):
        """Initialize dispatcher.

        Args:
            on_fault: Called (outside the lock) after a ``fault`` frame,
                typically to close the connection.
        """
        self._on_fault = on_fault
        self._parser = FrameParser()

        self._lock = threading.Lock()
        self._session = ScanSession()
        self._pending: Optional[PendingSample] = None
        self._device_info: Optional[DeviceInfo] = None
        self._latest_result: Optional[ScanResult] = None
        self._version_seen = threading.Event()

    # --- Reader thread side ---

    def dispatch(self, frame: str) -> ResponseEvent:
        """Apply one completed frame.

        Args:
            frame: Frame text without delimiters

        Returns:
            The classified event (mainly useful for tests and tracing)
        """
        event = self._parser.parse(frame)
        handler = self._HANDLERS[event.event_type]

        with self._lock:
            teardown = handler(self, event)

        if teardown and self._on_fault is not None:
            self._on_fault()
        return event

    def _handle_home(self, event: ResponseEvent) -> bool:
        self._resolve(SampleOutcome.ready())
        return False

    def _handle_amp(self, event: ResponseEvent) -> bool:
        logger.info(f"amp now: {event.argument}")
        return False

    def _handle_fault(self, event: ResponseEvent) -> bool:
        logger.error("scanner fault")
        self._session.discard()
        self._resolve(SampleOutcome.failed("scanner fault"))
        return True

    def _handle_limit(self, event: ResponseEvent) -> bool:
        logger.error("limit switch error")
        self._session.discard()
        self._resolve(SampleOutcome.failed("limit switch error"))
        return False

    def _handle_start(self, event: ResponseEvent) -> bool:
        self._session.start()
        return False

    def _handle_done(self, event: ResponseEvent) -> bool:
        if not self._session.active or not self._session.readings:
            logger.debug(f"Ignoring '{event.text}' with no active scan")
            return False
        if event.value is None:
            logger.error(f"Malformed done frame: {event.text!r}")
            return False

        result = self._session.finish(event.value)
        self._latest_result = result
        logger.info(f"scan took: {result.duration} and got: {len(result)}")
        self._resolve(SampleOutcome.succeeded(result))
        return False

    def _handle_version(self, event: ResponseEvent) -> bool:
        if self._device_info is None:
            self._device_info = DeviceInfo(version=event.argument)
            self._version_seen.set()
        return False

    def _handle_reading(self, event: ResponseEvent) -> bool:
        self._session.add(event.value)
        return False

    def _handle_unknown(self, event: ResponseEvent) -> bool:
        logger.error(f"not a value: {event.text}")
        return False

    _HANDLERS = {
        EventType.HOME: _handle_home,
        EventType.AMP: _handle_amp,
        EventType.FAULT: _handle_fault,
        EventType.LIMIT: _handle_limit,
        EventType.START: _handle_start,
        EventType.DONE: _handle_done,
        EventType.VERSION: _handle_version,
        EventType.READING: _handle_reading,
        EventType.UNKNOWN: _handle_unknown,
    }

    def _resolve(self, outcome: SampleOutcome) -> None:
        """Resolve the pending sample, if any. Caller holds the lock."""
        if self._pending is not None:
            self._pending.resolve(outcome)

    # --- Caller side ---

    def begin_sample(self) -> PendingSample:
        """Install a new pending sample.

        Raises:
            SampleInProgressError: If another sample is still waiting
        """
        with self._lock:
            if self._pending is not None and self._pending.waiting:
                raise SampleInProgressError("A sample is already in progress")
            self._pending = PendingSample()
            return self._pending

    def end_sample(self, pending: PendingSample) -> None:
        """Release the slot held by pending (no-op if it was replaced)."""
        with self._lock:
            if self._pending is pending:
                self._pending = None

    def abort(self, reason: str) -> None:
        """Fail any pending sample and drop the current scan."""
        with self._lock:
            self._session.discard()
            self._resolve(SampleOutcome.failed(reason))

    def reset(self) -> None:
        """Forget everything learned on the previous connection."""
        with self._lock:
            self._session.discard()
            self._device_info = None
            self._latest_result = None
            self._version_seen.clear()

    def wait_for_version(self, timeout: float) -> Optional[DeviceInfo]:
        """Block until a ``version:`` frame has been seen or timeout elapses."""
        self._version_seen.wait(timeout)
        return self.device_info

    @property
    def device_info(self) -> Optional[DeviceInfo]:
        with self._lock:
            return self._device_info

    @property
    def latest_result(self) -> Optional[ScanResult]:
        with self._lock:
            return self._latest_result

    @property
    def session_active(self) -> bool:
        with self._lock:
            return self._session.active

    @property
    def sample_pending(self) -> bool:
        with self._lock:
            return self._pending is not None and self._pending.waiting
