"""Estadísticas del feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict

from ..domain.reading import RejectReason


def _zero_rejections() -> Dict[RejectReason, int]:
    return {reason: 0 for reason in RejectReason}


@dataclass
class FeedStats:
    """Contadores de mensajes y de conexión."""

    received: int = 0
    accepted: int = 0
    rejected: Dict[RejectReason, int] = field(default_factory=_zero_rejections)
    connect_attempts: int = 0
    reconnects: int = 0
    forced_reconnects: int = 0
    connection_losses: int = 0
    setup_failures: int = 0
    last_message_at: float = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def rejected_total(self) -> int:
        return sum(self.rejected.values())

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} accepted={self.accepted} "
            f"rejected={self.rejected_total} reconnects={self.reconnects}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "received": self.received,
            "accepted": self.accepted,
            "rejected": {reason.value: count for reason, count in self.rejected.items()},
            "connect_attempts": self.connect_attempts,
            "reconnects": self.reconnects,
            "forced_reconnects": self.forced_reconnects,
            "connection_losses": self.connection_losses,
            "setup_failures": self.setup_failures,
            "last_message_at": self.last_message_at,
            "started_at": self.started_at.isoformat(),
        }
