"""In-memory debug logger for the control core.

Components record ``header -> value`` packets into a bounded buffer that the
host dumps once per loop (or whenever it wants to inspect the controller).
Nothing here touches files or sockets; ``Logger.flush`` forwards packets to the
standard :mod:`logging` module so they end up wherever the host configured it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol

from .config import LOGGER_CAPACITY, LOGGER_FULL_MESSAGE


class StringIdentifiable(Protocol):
    """Anything that can head a debug packet."""

    def identifier(self) -> str: ...


class MessageLevel(Enum):
    """Severity labels for free-text debug messages."""

    DEBUG = "Debug"
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"

    def identifier(self) -> str:
        return self.value

    @property
    def logging_level(self) -> int:
        """Matching level of the standard logging module."""
        return getattr(logging, self.name)


@dataclass(frozen=True)
class Identifier:
    """Free string header, e.g. a value name or a system name."""

    name: str

    def identifier(self) -> str:
        return self.name


@dataclass(frozen=True)
class IndexIdentifier:
    """Indexed header, rendered as ``Index[i]``."""

    index: int

    def identifier(self) -> str:
        return f"Index[{self.index}]"


@dataclass(frozen=True)
class DebugPacket:
    """A single recorded debug value."""

    header: StringIdentifiable
    value: Any

    def __str__(self) -> str:
        return f"{self.header.identifier()}: {self.value}"


class Logger:
    """Bounded buffer of debug packets.

    Once the buffer is two packets short of its capacity a single WARNING packet
    is recorded and every further record is dropped until the buffer is dumped
    or cleared. The buffer never holds more than ``capacity`` packets.

    Attributes:
        capacity: Maximum number of buffered packets.
    """

    def __init__(self, capacity: int = LOGGER_CAPACITY) -> None:
        """Initialize the logger.

        Args:
            capacity: Maximum number of buffered packets (default: 50).

        Raises:
            ValueError: If capacity is smaller than 1.
        """
        if capacity < 1:
            raise ValueError(f"Logger capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._buffer: List[DebugPacket] = []
        self._full = False

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_full(self) -> bool:
        return self._full

    def record(self, packet: DebugPacket) -> None:
        """Append a packet unless the buffer is full."""
        if self._full:
            return
        self._buffer.append(packet)

        if len(self._buffer) >= self.capacity - 2:
            if len(self._buffer) < self.capacity:
                self._buffer.append(DebugPacket(MessageLevel.WARNING, LOGGER_FULL_MESSAGE))
            self._full = True
            logging.debug("Debug logger buffer full, dropping further packets")

    def log_value(self, header: str, value: Any) -> None:
        """Record a named value."""
        self.record(DebugPacket(Identifier(header), value))

    def log_message(self, content: str, level: MessageLevel = MessageLevel.DEBUG) -> None:
        """Record a free-text message with a severity label."""
        self.record(DebugPacket(level, content))

    def clear(self) -> None:
        """Drop every buffered packet and re-enable recording."""
        self._buffer = []
        self._full = False

    def dump(self) -> List[DebugPacket]:
        """Return a snapshot of the buffered packets and clear the buffer."""
        snapshot = list(self._buffer)
        self.clear()
        return snapshot

    def flush(self, sink: Optional[Callable[[DebugPacket], None]] = None) -> List[DebugPacket]:
        """Dump the buffer and forward every packet.

        Args:
            sink: Callable receiving each packet. If None, packets are written
                to the standard logging module; messages keep their severity
                and values are logged at DEBUG.

        Returns:
            The dumped packets.
        """
        packets = self.dump()
        for packet in packets:
            if sink is not None:
                sink(packet)
            elif isinstance(packet.header, MessageLevel):
                logging.log(packet.header.logging_level, str(packet.value))
            else:
                logging.debug(str(packet))
        return packets
