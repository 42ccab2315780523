"""Blocking single-sample request on top of the asynchronous dispatcher."""
from __future__ import annotations

import logging
from typing import Callable

from .config import INVERT_KEY, ConfigStore
from .models import SampleOutcome, SampleStatus
from .protocol import commands
from .protocol.dispatcher import ResponseDispatcher

logger = logging.getLogger(__name__)

SAMPLE_TIMEOUT = 5.0  # seconds


class SampleCoordinator:
    """Runs one request -> wait -> result cycle.

    The caller's thread blocks in sample() while the reader thread feeds
    frames to the dispatcher, which resolves the pending sample.
    """

    def __init__(
        self,
        dispatcher: ResponseDispatcher,
        send: Callable[[bytes], bool],
        config: ConfigStore,
        timeout: float = SAMPLE_TIMEOUT,
    ):
        """Initialize coordinator.

        Args:
            dispatcher: Dispatcher that resolves pending samples
            send: Sends a command payload (terminator added by the sender)
            config: Configuration, consulted for the ``invert`` flag
            timeout: Seconds to wait for the scanner before giving up
        """
        self._dispatcher = dispatcher
        self._send = send
        self._config = config
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    def sample(self) -> SampleOutcome:
        """Request one scan and wait for it.

        Returns:
            SampleOutcome. A timeout is a normal outcome, not an exception.

        Raises:
            SampleInProgressError: If another sample is still outstanding
        """
        pending = self._dispatcher.begin_sample()
        try:
            if not self._send(commands.single_sample()):
                return SampleOutcome.failed("could not send sample request")
            outcome = pending.wait(self._timeout)
        finally:
            self._dispatcher.end_sample(pending)

        if outcome is None:
            logger.error(f"sample(): timed out after {self._timeout}s")
            return SampleOutcome.timeout()

        if outcome.status is SampleStatus.SUCCEEDED and self._config.get_bool(INVERT_KEY):
            return SampleOutcome.succeeded(outcome.result.inverted())

        return outcome
