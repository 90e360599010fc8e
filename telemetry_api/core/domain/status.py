"""Estados de conexión y bandas de severidad."""

from __future__ import annotations

from enum import Enum


class ConnectionStatus(str, Enum):
    """Estado del enlace con el broker. Solo uno vigente a la vez."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"
    LOST = "lost"
    RECONNECT_SCHEDULED = "reconnect_scheduled"
    FAILED = "failed"

    @property
    def is_linked(self) -> bool:
        """True si hay transporte establecido (connected o subscribed)."""
        return self in (ConnectionStatus.CONNECTED, ConnectionStatus.SUBSCRIBED)


class SeverityBand(str, Enum):
    """Clasificación de temperatura, de menor a mayor severidad."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    SeverityBand.NORMAL: 0,
    SeverityBand.WARNING: 1,
    SeverityBand.CRITICAL: 2,
}
