"""Clasificación de temperatura por umbrales.

Bandas (cerradas por arriba):
- t <= normal_max                  → NORMAL
- normal_max < t <= warning_max    → WARNING
- t > warning_max                  → CRITICAL

`normal_min` es el borde inferior del rango seguro; se expone para la capa de
presentación pero no cambia la banda (la clasificación es monótona).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.domain.status import SeverityBand


@dataclass(frozen=True)
class SeverityBounds:
    """Umbrales de severidad.

    normal_max: borde superior del rango seguro
    warning_max: borde superior del rango tolerable
    """
    normal_max: float
    warning_max: float
    normal_min: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "normal_min": self.normal_min,
            "normal_max": self.normal_max,
            "warning_max": self.warning_max,
        }


def classify(temperature: float, bounds: SeverityBounds) -> SeverityBand:
    """Clasifica una temperatura. Pura, total y determinista."""
    if temperature <= bounds.normal_max:
        return SeverityBand.NORMAL
    if temperature <= bounds.warning_max:
        return SeverityBand.WARNING
    return SeverityBand.CRITICAL
