"""Protocol layer for the scanner's framed ASCII responses."""

from .frames import FrameAssembler, FRAME_CAPACITY
from .parser import FrameParser, ResponseEvent, EventType
from .dispatcher import ResponseDispatcher

__all__ = [
    "FrameAssembler",
    "FRAME_CAPACITY",
    "FrameParser",
    "ResponseEvent",
    "EventType",
    "ResponseDispatcher",
]
