"""Reconexión forzada al volver a primer plano.

background → active: teardown + reconnect incondicional (la sesión anterior
se considera obsoleta). active → background: sin acción, la conexión queda
intacta. Sin debounce.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

from .activity import ActivitySource, ActivityState

logger = logging.getLogger(__name__)


class Reconnectable(Protocol):
    def reconnect(self, reason: str = ...) -> None: ...


class LifecycleTrigger:
    def __init__(
        self,
        target: Reconnectable,
        source: ActivitySource,
        initial_state: ActivityState = ActivityState.ACTIVE,
    ):
        self._target = target
        self._source = source
        self._state = initial_state
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._resumes = 0

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._source.subscribe(self.on_signal)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def state(self) -> ActivityState:
        return self._state

    @property
    def resumes(self) -> int:
        return self._resumes

    def on_signal(self, state: ActivityState) -> None:
        with self._lock:
            previous, self._state = self._state, state
            resumed = previous == ActivityState.BACKGROUND and state == ActivityState.ACTIVE
            if resumed:
                self._resumes += 1

        if resumed:
            logger.info("[LIFECYCLE] Resumed from background, forcing reconnect")
            self._target.reconnect("resume")
        elif state == ActivityState.BACKGROUND and previous != state:
            logger.info("[LIFECYCLE] Moved to background, connection left intact")
