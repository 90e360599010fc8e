"""Monitoring layer - Métricas y observabilidad."""

from .stats import FeedStats

__all__ = ["FeedStats"]
