"""Scanner facade.

Wires the serial connection, frame assembly, response dispatch and sample
coordination together behind one object.
"""
from __future__ import annotations

import logging
from typing import Optional

from .config import DEFAULT_DEVICE_NAME, GAIN_LEVEL_KEY, ConfigStore
from .coordinator import SAMPLE_TIMEOUT, SampleCoordinator
from .device.connection import ScannerConnection
from .device.finder import Discovery
from .errors import ConnectionCloseError, DeviceNotFoundError
from .models import DeviceInfo, SampleOutcome, ScanResult
from .protocol import commands
from .protocol.dispatcher import ResponseDispatcher
from .protocol.frames import FrameAssembler

logger = logging.getLogger(__name__)

VERSION_WAIT = 1.5  # seconds


class Scanner:
    """High-level interface to the beam scanner.

    This class acts as a facade, managing:
    1. The serial link (ScannerConnection)
    2. Frame assembly on the reader thread (FrameAssembler)
    3. Frame classification and session state (ResponseDispatcher)
    4. Blocking sample requests (SampleCoordinator)

    Example:
        >>> with Scanner(PropertiesConfig("beamscan.properties")) as scanner:
        ...     outcome = scanner.sample()
        ...     if outcome.ok:
        ...         print(outcome.result.readings)
    """

    def __init__(
        self,
        config: ConfigStore,
        device_name: str = DEFAULT_DEVICE_NAME,
        connection: Optional[ScannerConnection] = None,
        sample_timeout: float = SAMPLE_TIMEOUT,
        version_wait: float = VERSION_WAIT,
    ):
        """Initialize Scanner.

        Args:
            config: Configuration store (port, gainLevel, invert)
            device_name: Device name; also the configuration key of the port
            connection: Existing connection, or None to create one
            sample_timeout: Seconds sample() waits for the scanner
            version_wait: Seconds connect() waits for the firmware version
        """
        self._config = config
        self._version_wait = version_wait

        self._connection = connection or ScannerConnection(
            config,
            Discovery(config, device_name=device_name),
            device_name=device_name,
        )
        self._dispatcher = ResponseDispatcher(on_fault=self._on_fault)
        self._assembler = FrameAssembler(self._dispatcher.dispatch)
        self._coordinator = SampleCoordinator(
            self._dispatcher,
            self.send_command,
            config,
            timeout=sample_timeout,
        )

        self._connection.subscribe_data(self._assembler.feed)
        self._connection.subscribe_disconnect(self._on_link_lost)

    def connect(self) -> bool:
        """Open the link and run the start-up handshake.

        Queries the firmware version, then applies the configured gain.
        Does nothing if the link is already open.

        Returns:
            True if the link is open.
        """
        if self._connection.is_open():
            logger.warning("Scanner already connected")
            return True

        self._dispatcher.reset()
        self._assembler.reset()

        if not self._connection.open():
            return False

        info = self.request_version()
        logger.info(f"beamscan port: {self._connection.port}")
        logger.info(f"beamscan version: {info.version if info else None}")

        gain = self._config.get_int(GAIN_LEVEL_KEY)
        if gain is None:
            logger.info("No gain level configured, leaving scanner default")
        else:
            try:
                self.set_gain(gain)
            except ValueError as e:
                logger.error(f"Ignoring configured gain: {e}")

        return True

    def close(self) -> None:
        """Release any blocked sample() and close the link.

        Raises:
            ConnectionCloseError: If the port could not be closed
        """
        self._dispatcher.abort("connection closed")
        self._connection.close()

    @property
    def is_connected(self) -> bool:
        return self._connection.is_open()

    # --- Commands ---

    def send_command(self, payload: bytes) -> bool:
        """Send a raw command payload (CR is appended)."""
        return self._connection.send_command(payload)

    def sample(self) -> SampleOutcome:
        """Take one scan. Blocks for at most the sample timeout.

        Raises:
            SampleInProgressError: If another sample is still outstanding
        """
        return self._coordinator.sample()

    def set_gain(self, level: int) -> bool:
        """Set the amplifier gain (0-255).

        Raises:
            ValueError: If level is outside 0-255
        """
        return self.send_command(commands.set_gain(level))

    def request_version(self) -> Optional[DeviceInfo]:
        """Return the firmware version, querying the scanner if unknown."""
        info = self._dispatcher.device_info
        if info is None:
            self.send_command(commands.version_query())
            info = self._dispatcher.wait_for_version(self._version_wait)
        return info

    # --- State ---

    @property
    def device_info(self) -> Optional[DeviceInfo]:
        return self._dispatcher.device_info

    @property
    def latest_result(self) -> Optional[ScanResult]:
        """Most recent completed scan, including ones not requested by sample()."""
        return self._dispatcher.latest_result

    def _on_link_lost(self, error: Exception) -> None:
        """Release a blocked sample() after the link dropped. Runs on the reader thread."""
        logger.warning(f"scanner link lost: {error}")
        self._dispatcher.abort("connection lost")

    def _on_fault(self) -> None:
        """Drop the link after a scanner fault. Runs on the reader thread."""
        try:
            self._connection.close()
        except ConnectionCloseError as e:
            logger.error(f"Error closing link after fault: {e}")

    def __enter__(self) -> Scanner:
        if not self.connect():
            raise DeviceNotFoundError("Could not connect to the scanner")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
