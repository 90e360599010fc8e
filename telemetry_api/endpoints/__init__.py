"""Módulo de endpoints HTTP."""

from .health import router as health_router
from .feed_status import router as feed_router

__all__ = [
    "health_router",
    "feed_router",
]
