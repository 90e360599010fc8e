"""Clasificación de lecturas por umbrales de severidad."""

from .thresholds import SeverityBounds, classify

__all__ = ["SeverityBounds", "classify"]
