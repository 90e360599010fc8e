"""Timers diferidos y cancelables para reintentos y timeouts de conexión."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Cancela el timer. Idempotente; sin efecto si ya disparó."""


class RetryScheduler(ABC):
    """Programa callbacks diferidos. Nunca bloquea al llamador."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Arma un timer de `delay` segundos."""


class _ThreadingTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(RetryScheduler):
    """Scheduler basado en threading.Timer (hilos daemon)."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(0.0, delay), self._run, args=(callback,))
        timer.daemon = True
        timer.name = f"feed-timer-{delay:.1f}s"
        timer.start()
        return _ThreadingTimerHandle(timer)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.exception("[TIMER] Callback error: %s", e)
