from .core import (
    Discovery,
    PortInfo,
    device_signature,
    find_device,
    list_ports_info,
    probe_port,
    search,
)
from .errors import DeviceNotFoundError, ProbeError

__all__ = [
    "Discovery",
    "PortInfo",
    "device_signature",
    "find_device",
    "list_ports_info",
    "probe_port",
    "search",
    "DeviceNotFoundError",
    "ProbeError",
]
