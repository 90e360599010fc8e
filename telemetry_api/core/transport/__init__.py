"""Transport layer - Sesión con el broker MQTT."""

from .base import (
    EventListener,
    Transport,
    TransportError,
    TransportEvent,
    TransportEventType,
    TransportFactory,
)
from .mqtt_client import PahoTransport, paho_transport_factory

__all__ = [
    "EventListener",
    "Transport",
    "TransportError",
    "TransportEvent",
    "TransportEventType",
    "TransportFactory",
    "PahoTransport",
    "paho_transport_factory",
]
