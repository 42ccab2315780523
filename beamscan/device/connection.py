"""Serial link to the scanner.

This module handles:
- Resolving the port (configured, or discovered and persisted)
- Opening the link with the scanner's fixed parameters (115200 8N1)
- Raw byte stream forwarding to subscribers from a reader thread
- Writing CR-terminated commands
- Forgetting the port when it turns out to be bad

Note: This is a RAW BYTE STREAM layer. It does not interpret frames.
      Subscribe a FrameAssembler to turn bytes into frames.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

import serial

from ..config import DEFAULT_DEVICE_NAME, ConfigStore
from ..errors import ConnectionCloseError
from ..protocol.commands import encode_command
from .finder import Discovery

logger = logging.getLogger(__name__)

CONNECTION_BAUD = 115200
CONNECTION_BYTESIZE = serial.EIGHTBITS
CONNECTION_PARITY = serial.PARITY_NONE
CONNECTION_STOPBITS = serial.STOPBITS_ONE
READ_TIMEOUT = 0.1  # seconds
READ_CHUNK_SIZE = 32  # bytes


class ConnectionState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"


class ScannerConnection:
    """Serial connection to the scanner.

    State machine: CLOSED -> OPENING -> OPEN -> CLOSED.

    Example:
        >>> conn = ScannerConnection(config, Discovery(config))
        >>> assembler = FrameAssembler(dispatcher.dispatch)
        >>> conn.subscribe_data(assembler.feed)
        >>> conn.open()
        True
        >>> conn.send_command(b"q")
        >>> conn.close()
    """

    def __init__(self,
                 config: ConfigStore,
                 discovery: Optional[Discovery] = None,
                 device_name: str = DEFAULT_DEVICE_NAME,
                 timeout: float = READ_TIMEOUT,
                 chunk_size: int = READ_CHUNK_SIZE):
        """Initialize connection.

        Args:
            config: Configuration holding the port under device_name
            discovery: Used when no port is configured (default: Discovery(config))
            device_name: Configuration key of the port
            timeout: Read timeout in seconds
            chunk_size: Maximum bytes to read per chunk
        """
        self._config = config
        self._device_name = device_name
        self._discovery = discovery or Discovery(config, device_name=device_name)
        self._timeout = timeout
        self._chunk_size = chunk_size

        self._serial: Optional[serial.Serial] = None
        self._port: Optional[str] = None
        self._state = ConnectionState.CLOSED
        self._state_lock = threading.RLock()

        self._active = False
        self._reader_thread: Optional[threading.Thread] = None

        self._data_callbacks: List[Callable[[bytes], None]] = []
        self._disconnect_callbacks: List[Callable[[Exception], None]] = []
        self._callback_lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def port(self) -> Optional[str]:
        return self._port

    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN and self._serial is not None

    def open(self) -> bool:
        """Open the serial link.

        Looks up the port in the configuration, running discovery if it is
        missing. On any failure the configured port is deleted so the next
        attempt rediscovers it.

        Returns:
            True if the link is open, False otherwise
        """
        with self._state_lock:
            if self._state is ConnectionState.OPEN:
                logger.warning("Already connected")
                return True
            self._state = ConnectionState.OPENING

        port = self._config.get(self._device_name)
        if port is None:
            port = self._discovery.discover()
            if port is None:
                logger.error(f"no device found: can't find {self._device_name}")
                self._state = ConnectionState.CLOSED
                return False

        link = None
        try:
            link = serial.Serial(
                port=port,
                baudrate=CONNECTION_BAUD,
                bytesize=CONNECTION_BYTESIZE,
                parity=CONNECTION_PARITY,
                stopbits=CONNECTION_STOPBITS,
                timeout=self._timeout,
            )
            # Drop whatever the scanner printed before we were listening
            link.reset_input_buffer()
        except (serial.SerialException, OSError, ValueError) as e:
            logger.error(f"connection fail: {port} error: {e}")
            self._abandon_open(link)
            return False
        except Exception as e:
            logger.error(f"Unexpected error opening port: {port} error: {e}")
            self._abandon_open(link)
            return False

        with self._state_lock:
            self._serial = link
            self._port = port
            self._active = True
            self._state = ConnectionState.OPEN
            self._start_reader_thread()

        logger.info(f"Connected to {self._device_name} on {port} @ {CONNECTION_BAUD} baud")
        return True

    def close(self) -> None:
        """Release the serial link.

        Safe to call when already closed, and from the reader thread itself.

        Raises:
            ConnectionCloseError: If the port could not be closed
        """
        with self._state_lock:
            if self._state is ConnectionState.CLOSED and self._serial is None:
                return
            self._active = False
            self._state = ConnectionState.CLOSED
            link, self._serial = self._serial, None
            reader = self._reader_thread

        if (reader and reader.is_alive()
                and reader is not threading.current_thread()):
            reader.join(timeout=1.0)

        if link is not None:
            try:
                link.close()
            except Exception as e:
                logger.error(f"Error closing {self._port}: {e}")
                raise ConnectionCloseError(
                    f"Failed to close {self._port}: {e}", port=self._port
                ) from e

        logger.info(f"Disconnected from {self._port}")

    def send_command(self, payload: bytes) -> bool:
        """Send a command followed by the CR terminator.

        Failures are logged, never raised.

        Returns:
            True if sent successfully, False otherwise
        """
        link = self._serial
        if not self.is_open() or link is None:
            logger.error("Cannot send, not connected")
            return False

        try:
            logger.debug(f"sending command: {payload[:1]!r}")
            link.write(encode_command(payload))
            link.flush()
            return True
        except (serial.SerialException, OSError, ValueError) as e:
            logger.error(f"Send error: {e}")
            return False

    def subscribe_data(self,
                       callback: Callable[[bytes], None]
                       ) -> Callable[[], None]:
        """Subscribe to the raw byte stream.

        Callbacks run on the reader thread, one chunk at a time, and must
        not block.

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._data_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._data_callbacks:
                    self._data_callbacks.remove(callback)

        return unsubscribe

    def subscribe_disconnect(self,
                             callback: Callable[[Exception], None]
                             ) -> Callable[[], None]:
        """Subscribe to link loss (read error while open).

        Called on the reader thread with the error, after the link has been
        torn down. Not called for an explicit close().

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._disconnect_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._disconnect_callbacks:
                    self._disconnect_callbacks.remove(callback)

        return unsubscribe

    # Internal methods

    def _forget_port(self) -> None:
        """Drop the configured port so the next open() rediscovers it."""
        self._config.delete(self._device_name)
        self._config.persist()

    def _abandon_open(self, link: Optional[serial.Serial]) -> None:
        """Release a partly opened link, forget the port and go back to CLOSED."""
        if link is not None:
            try:
                link.close()
            except Exception as e:
                logger.error(f"Error closing failed link: {e}")
        self._forget_port()
        self._state = ConnectionState.CLOSED

    def _start_reader_thread(self) -> None:
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            daemon=True,
            name="ScannerReader"
        )
        self._reader_thread.start()

    def _reader_loop(self) -> None:
        """Read raw bytes and dispatch them to callbacks."""
        logger.debug("Reader thread started")

        while self._active:
            link = self._serial
            if link is None:
                break
            try:
                chunk = link.read(self._chunk_size)
                if chunk:
                    self._notify_data_callbacks(chunk)
            except (serial.SerialException, OSError) as e:
                if self._active:
                    logger.error(f"event: {e}")
                    self._handle_error(e)
                break

        logger.debug("Reader thread exiting")

    def _notify_data_callbacks(self, data: bytes) -> None:
        with self._callback_lock:
            callbacks = list(self._data_callbacks)

        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error in data callback: {e}")

    def _handle_error(self, error: Exception) -> None:
        """Tear the link down after a read error (e.g. device unplugged)."""
        logger.warning(f"Handling connection error: {error}")
        try:
            self.close()
        except ConnectionCloseError as e:
            logger.error(f"Connection closed with error: {e}")

        with self._callback_lock:
            callbacks = list(self._disconnect_callbacks)

        for callback in callbacks:
            try:
                callback(error)
            except Exception as e:
                logger.error(f"Error in disconnect callback: {e}")
