"""BeamScan - serial command/response engine for the beam scanner."""

from .config import ConfigStore, MemoryConfig, PropertiesConfig
from .coordinator import SampleCoordinator
from .device import ConnectionState, Discovery, ScannerConnection
from .errors import (
    BeamScanError,
    ConnectionCloseError,
    DeviceNotFoundError,
    SampleInProgressError,
)
from .models import DeviceInfo, SampleOutcome, SampleStatus, ScanResult
from .protocol import FrameAssembler, ResponseDispatcher
from .scanner import Scanner

__all__ = [
    "ConfigStore",
    "MemoryConfig",
    "PropertiesConfig",
    "SampleCoordinator",
    "ConnectionState",
    "Discovery",
    "ScannerConnection",
    "BeamScanError",
    "ConnectionCloseError",
    "DeviceNotFoundError",
    "SampleInProgressError",
    "DeviceInfo",
    "SampleOutcome",
    "SampleStatus",
    "ScanResult",
    "FrameAssembler",
    "ResponseDispatcher",
    "Scanner",
]
