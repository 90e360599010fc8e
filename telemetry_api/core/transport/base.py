"""Abstract interface for the broker transport.

The state machine never talks to paho directly: a transport turns broker
callbacks into `TransportEvent`s delivered to a single listener. Any
implementation (paho, in-memory fake for tests) can implement this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from ..domain.feed_config import FeedConfig


class TransportEventType(str, Enum):
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    SUBSCRIBED = "subscribed"
    SUBSCRIBE_FAILED = "subscribe_failed"
    CONNECTION_LOST = "connection_lost"
    MESSAGE = "message"


@dataclass(frozen=True)
class TransportEvent:
    """Event emitted by a transport."""
    type: TransportEventType
    payload: Optional[bytes] = None
    topic: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def message(cls, payload: bytes, topic: Optional[str] = None) -> "TransportEvent":
        return cls(TransportEventType.MESSAGE, payload=payload, topic=topic)


EventListener = Callable[[TransportEvent], None]


class TransportError(Exception):
    """Network-level transport failure (recoverable by reconnecting)."""


class Transport(ABC):
    """One broker session. Not reusable: a reconnect builds a new transport.

    Implementations:
    - PahoTransport: paho-mqtt client (tcp or websockets)
    - FakeTransport (tests): emits events on demand
    """

    @abstractmethod
    def connect(self) -> None:
        """Start connecting without blocking.

        The outcome arrives as CONNECTED / CONNECT_FAILED events.

        Raises:
            TransportError, OSError: if the attempt cannot even be issued
        """

    @abstractmethod
    def subscribe(self, topic: str, qos: int = 0) -> None:
        """Issue a subscribe request. SUBACK arrives as SUBSCRIBED / SUBSCRIBE_FAILED.

        Raises:
            TransportError: if the request cannot be sent
        """

    @abstractmethod
    def close(self) -> None:
        """Release the session. May raise; callers treat errors as non-fatal."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the transport has an established session."""


TransportFactory = Callable[["FeedConfig", str, EventListener], Transport]
