"""Frame parser for scanner responses.

Classifies completed frames into response events.
Pure functions with no side effects.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_INTEGER = re.compile(r"[+-]?[0-9]+")


class EventType(Enum):
    """Kind of response frame."""
    HOME = "home"
    AMP = "amp"
    FAULT = "fault"
    LIMIT = "limit"
    START = "start"
    DONE = "done"
    VERSION = "version"
    READING = "reading"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResponseEvent:
    """A classified frame.

    Attributes:
        event_type: Kind of frame
        text: Original frame text
        argument: Text argument (amp level, done duration, firmware version)
        value: Integer payload (reading value, parsed done duration)
    """
    event_type: EventType
    text: str
    argument: Optional[str] = None
    value: Optional[int] = None


# Checked in order; case-sensitive.
_PREFIXES = (
    ("home", EventType.HOME),
    ("amp ", EventType.AMP),
    ("fault", EventType.FAULT),
    ("limit", EventType.LIMIT),
    ("start", EventType.START),
    ("done", EventType.DONE),
    ("version:", EventType.VERSION),
)


class FrameParser:
    """Parser for the scanner's response vocabulary.

    Handles these frames:
    - home              - scanner is idle at its home position
    - amp <level>       - amplifier level report
    - fault             - scanner fault, link must be dropped
    - limit             - limit switch tripped
    - start             - scan started
    - done <duration>   - scan finished
    - version:<text>    - firmware version
    - <integer>         - one sample reading
    """

    @staticmethod
    def parse(frame: str) -> ResponseEvent:
        """Classify a single frame.

        Args:
            frame: Frame text without delimiters

        Returns:
            ResponseEvent; UNKNOWN if the frame matches nothing

        Examples:
            >>> FrameParser.parse("done 300").value
            300
            >>> FrameParser.parse("42").event_type
            <EventType.READING: 'reading'>
        """
        for prefix, event_type in _PREFIXES:
            if frame.startswith(prefix):
                return FrameParser._parse_prefixed(frame, prefix, event_type)

        if _INTEGER.fullmatch(frame):
            return ResponseEvent(EventType.READING, frame, value=int(frame))

        return ResponseEvent(EventType.UNKNOWN, frame)

    @staticmethod
    def _parse_prefixed(frame: str, prefix: str, event_type: EventType) -> ResponseEvent:
        if event_type is EventType.VERSION:
            return ResponseEvent(event_type, frame, argument=frame[len(prefix):])

        if event_type in (EventType.AMP, EventType.DONE):
            argument = FrameParser._first_argument(frame)
            value = None
            if argument is not None and _INTEGER.fullmatch(argument):
                value = int(argument)
            return ResponseEvent(event_type, frame, argument=argument, value=value)

        return ResponseEvent(event_type, frame)

    @staticmethod
    def _first_argument(frame: str) -> Optional[str]:
        """Return the first whitespace-separated token after the keyword."""
        parts = frame.split()
        if len(parts) < 2:
            return None
        return parts[1]
