from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import serial
from serial.tools import list_ports

from ...config import DEFAULT_DEVICE_NAME, ConfigStore
from .errors import DeviceNotFoundError, ProbeError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 10
PROBE_BAUDRATE = 115200
PROBE_WINDOW = 2.0  # seconds; the scanner prints its id banner after reset
PROBE_READ_TIMEOUT = 0.1  # seconds
RETRY_DELAY = 0.5  # seconds between discovery attempts


@dataclass(frozen=True)
class PortInfo:
    """
    One serial port as seen by pyserial.

    Attributes:
        port: Port name to open with pyserial (e.g. 'COM3', '/dev/ttyUSB0').
        description: Human readable description, if available.
        hwid: Raw hardware ID string from pyserial (for debugging).
    """
    port: str
    description: Optional[str]
    hwid: Optional[str]


def _port_to_info(port) -> PortInfo:
    """Convert pyserial's ListPortInfo to PortInfo."""
    return PortInfo(
        port=port.device,
        description=port.description,
        hwid=port.hwid,
    )


def device_signature(device_name: str) -> str:
    """Id banner the scanner prints, e.g. ``<id:beamscan>``."""
    return f"<id:{device_name}>"


def list_ports_info() -> List[PortInfo]:
    """List every serial port on this machine."""
    return [_port_to_info(port) for port in list_ports.comports()]


def _read_banner(port: str, baudrate: int, window: float, signature: bytes) -> bytes:
    """Listen on port for up to window seconds, stopping early on signature."""
    received = bytearray()
    try:
        with serial.Serial(
            port=port,
            baudrate=baudrate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=PROBE_READ_TIMEOUT,
        ) as link:
            deadline = time.monotonic() + window
            while time.monotonic() < deadline:
                received.extend(link.read(64))
                if signature in received:
                    break
    except (serial.SerialException, OSError) as e:
        raise ProbeError(f"Cannot probe {port}: {e}", port=port) from e
    return bytes(received)


def probe_port(
    port: str,
    signature: str,
    *,
    baudrate: int = PROBE_BAUDRATE,
    window: float = PROBE_WINDOW,
) -> bool:
    """
    Check whether the device on port announces signature.

    Ports that cannot be opened (busy, vanished, permissions) simply do
    not match.
    """
    try:
        banner = _read_banner(port, baudrate, window, signature.encode("ascii"))
    except ProbeError as e:
        logger.debug(str(e))
        return False
    return signature.encode("ascii") in banner


def search(
    signature: str,
    *,
    prober: Callable[[str, str], bool] = probe_port,
    ports: Optional[Callable[[], List[PortInfo]]] = None,
) -> Optional[str]:
    """
    Probe every serial port once for signature.

    Returns:
        The first matching port name, or None.
    """
    candidates = (ports or list_ports_info)()
    for info in candidates:
        logger.debug(f"Probing {info.port} ({info.description})")
        if prober(info.port, signature):
            return info.port
    return None


class Discovery:
    """
    Bounded search for the scanner across all serial ports.

    On success the winning port is stored in the configuration under the
    device name and persisted, so later connections skip discovery.
    """

    def __init__(
        self,
        config: ConfigStore,
        device_name: str = DEFAULT_DEVICE_NAME,
        attempts: int = MAX_ATTEMPTS,
        prober: Callable[[str, str], bool] = probe_port,
        ports: Optional[Callable[[], List[PortInfo]]] = None,
        retry_delay: float = RETRY_DELAY,
    ):
        self._config = config
        self._device_name = device_name
        self._attempts = attempts
        self._prober = prober
        self._ports = ports
        self._retry_delay = retry_delay

    @property
    def device_name(self) -> str:
        return self._device_name

    def discover(self) -> Optional[str]:
        """
        Search for the scanner, retrying up to the configured attempts.

        Returns:
            The port name, or None if the scanner was not found. Nothing is
            written to the configuration in that case.
        """
        signature = device_signature(self._device_name)
        logger.info(f"looking for {self._device_name} scanner...")

        for attempt in range(1, self._attempts + 1):
            port = search(signature, prober=self._prober, ports=self._ports)
            if port is not None:
                logger.info(f"found scanner: {port}")
                self._config.put(self._device_name, port)
                self._config.persist()
                return port
            logger.debug(f"Attempt {attempt}/{self._attempts}: no scanner found")
            if attempt < self._attempts:
                time.sleep(self._retry_delay)

        logger.error(
            f"can't find {self._device_name} after {self._attempts} attempts"
        )
        return None


def find_device(
    config: ConfigStore,
    device_name: str = DEFAULT_DEVICE_NAME,
    attempts: int = MAX_ATTEMPTS,
) -> str:
    """
    Discover the scanner or fail.

    Raises:
        DeviceNotFoundError: If no port announced the device.
    """
    port = Discovery(config, device_name=device_name, attempts=attempts).discover()
    if port is None:
        raise DeviceNotFoundError(f"No {device_name} scanner found")
    return port
