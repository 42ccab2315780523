"""Device layer for the scanner's serial link.

This module provides:
- Serial connection management (ScannerConnection) - Raw byte stream
- Port discovery by id banner (Discovery, search, probe_port)
"""

from .connection import ScannerConnection, ConnectionState
from .finder import (
    Discovery,
    PortInfo,
    DeviceNotFoundError,
    ProbeError,
    device_signature,
    find_device,
    list_ports_info,
    probe_port,
    search,
)

__all__ = [
    # Connection
    'ScannerConnection',
    'ConnectionState',

    # Finder
    'Discovery',
    'PortInfo',
    'DeviceNotFoundError',
    'ProbeError',
    'device_signature',
    'find_device',
    'list_ports_info',
    'probe_port',
    'search',
]
