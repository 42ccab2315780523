"""Configuration store used by the scanner engine.

The engine only ever needs four operations from its configuration:
``get``, ``put``, ``delete`` and ``persist``. ConfigStore captures that
contract; MemoryConfig and PropertiesConfig are the two stock
implementations.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

# Keys consumed by the engine. The transport identity is stored under the
# device name itself (e.g. "beamscan" -> "/dev/ttyUSB0").
DEFAULT_DEVICE_NAME = "beamscan"
GAIN_LEVEL_KEY = "gainLevel"
INVERT_KEY = "invert"


class ConfigStore(ABC):
    """Abstract key/value configuration collaborator."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if not set."""
        pass

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Set key to value (in memory until persist() is called)."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""
        pass

    @abstractmethod
    def persist(self) -> None:
        """Write pending changes to durable storage."""
        pass

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Return key as a boolean ("true"/"false", case-insensitive)."""
        value = self.get(key)
        if value is None:
            return default
        value = value.strip().lower()
        if value == "true":
            return True
        if value == "false":
            return False
        return default

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Return key as an integer, or default if missing or malformed."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(f"Config value for {key!r} is not an integer: {value!r}")
            return default


class MemoryConfig(ConfigStore):
    """Dict-backed configuration. persist() is a no-op."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(values or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key.strip())

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key.strip()] = str(value).strip()

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key.strip(), None)

    def persist(self) -> None:
        pass

    def as_dict(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._values)


class PropertiesConfig(MemoryConfig):
    """File-backed ``key=value`` configuration.

    Lines starting with ``#`` or ``!`` are comments. Keys and values are
    whitespace-trimmed. The file is read on construction and rewritten in
    full on persist(); comments are not preserved.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self._path = Path(path)
        if self._path.exists():
            self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        text = self._path.read_text(encoding="utf-8")
        for lineno, raw in enumerate(text.splitlines(), 1):
            line = raw.strip()
            if not line or line[0] in "#!":
                continue
            sep = _find_separator(line)
            if sep == -1:
                logger.warning(f"{self._path}:{lineno}: ignoring line without separator")
                continue
            self.put(line[:sep], line[sep + 1:])

    def persist(self) -> None:
        values = self.as_dict()
        lines = [f"{key}={value}" for key, value in sorted(values.items())]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.debug(f"Wrote {len(values)} settings to {self._path}")


def _find_separator(line: str) -> int:
    """Index of the first '=' or ':' in line, or -1."""
    positions = [i for i in (line.find("="), line.find(":")) if i != -1]
    return min(positions) if positions else -1
