"""Fuente de señales de actividad del host (primer plano / segundo plano)."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class ActivityState(str, Enum):
    ACTIVE = "active"
    BACKGROUND = "background"


ActivityListener = Callable[[ActivityState], None]


class ActivitySource(ABC):
    """Capacidad mínima: emitir señales de actividad de dos valores."""

    @abstractmethod
    def subscribe(self, listener: ActivityListener) -> Callable[[], None]:
        """Registra un listener. Devuelve la función para desregistrarlo."""


class InProcessActivitySource(ActivitySource):
    """Fuente alimentada por código (endpoint HTTP, CLI, tests)."""

    def __init__(self) -> None:
        self._listeners: List[ActivityListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ActivityListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, state: ActivityState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception as e:
                logger.warning("[LIFECYCLE] Listener error (ignored): %s", e)
