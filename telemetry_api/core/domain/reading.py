"""Modelo de dominio para lecturas de temperatura."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class RejectReason(str, Enum):
    """Motivo de rechazo de un payload entrante."""
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_FIELD = "missing_field"
    NOT_A_NUMBER = "not_a_number"


@dataclass(frozen=True)
class Reading:
    """Lectura de temperatura - inmutable una vez creada.

    `observed_at` es la hora de ingesta (UTC), no la que declare el payload.
    """
    value: float
    observed_at: datetime

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class ParseResult:
    """Resultado del codec: una lectura o un motivo de rechazo."""

    reading: Optional[Reading] = None
    reason: Optional[RejectReason] = None
    error: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.reading is not None

    @classmethod
    def ok(cls, reading: Reading) -> "ParseResult":
        return cls(reading=reading)

    @classmethod
    def rejected(cls, reason: RejectReason, error: str) -> "ParseResult":
        return cls(reason=reason, error=error)
