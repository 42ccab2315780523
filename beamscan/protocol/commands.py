"""Command encoding for the scanner.

Every command is one or more payload bytes followed by a single CR.
"""
from __future__ import annotations

from ..models import GAIN, GET_VERSION, SINGLE, TERMINATOR

GAIN_MIN = 0
GAIN_MAX = 255


def encode_command(payload: bytes) -> bytes:
    """Append the CR terminator to a command payload.

    Raises:
        ValueError: If payload is empty
    """
    if not payload:
        raise ValueError("Command payload must not be empty")
    return bytes(payload) + TERMINATOR


def version_query() -> bytes:
    return GET_VERSION


def single_sample() -> bytes:
    return SINGLE


def set_gain(level: int) -> bytes:
    """Build the gain command payload: ``a`` followed by one level byte.

    Args:
        level: Gain level, 0-255

    Raises:
        ValueError: If level is outside 0-255
    """
    if not GAIN_MIN <= level <= GAIN_MAX:
        raise ValueError(f"Gain level must be {GAIN_MIN}-{GAIN_MAX}, got {level}")
    return GAIN + bytes([level])
