"""Canal de eventos de un solo worker.

Desacopla los callbacks de paho y de los timers de la máquina de estados:
el hilo de red solo encola (~0.01ms) y un único worker procesa los eventos
en orden de llegada.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

_Task = Tuple[Callable[..., Any], Tuple[Any, ...]]
_STOP = object()


class EventDispatcher:
    """Cola FIFO + un hilo worker.

    - submit() nunca bloquea (cola sin límite: el orden importa más que la presión)
    - Un solo worker garantiza escritor único y orden de entrega
    - Errores de un evento se loguean y no detienen el worker
    """

    def __init__(self, name: str = "feed-dispatcher"):
        self._name = name
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        # Metrics
        self._submitted = 0
        self._processed = 0
        self._errors = 0
        self._dropped = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(
                target=self._worker_loop,
                daemon=True,
                name=self._name,
            )
            self._thread.start()
        logger.info("[DISPATCH] Started worker=%s", self._name)

    def stop(self, timeout: float = 5.0) -> None:
        """Detiene el worker tras procesar lo ya encolado."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._queue.put(_STOP)
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("[DISPATCH] Stopped. %s", self.metrics)

    def submit(self, func: Callable[..., Any], *args: Any) -> bool:
        """Encola una tarea. Devuelve False si el worker no está corriendo."""
        if not self.is_running:
            with self._lock:
                self._dropped += 1
            logger.debug("[DISPATCH] Not running, dropped %s", getattr(func, "__name__", func))
            return False
        self._queue.put((func, args))
        with self._lock:
            self._submitted += 1
        return True

    def join(self) -> None:
        """Espera a que la cola quede vacía."""
        self._queue.join()

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                func, args = item
                func(*args)
                with self._lock:
                    self._processed += 1
            except Exception as e:
                with self._lock:
                    self._errors += 1
                logger.exception("[DISPATCH] Task error: %s", e)
            finally:
                self._queue.task_done()

    @property
    def metrics(self) -> dict:
        with self._lock:
            return {
                "queue_depth": self._queue.qsize(),
                "submitted": self._submitted,
                "processed": self._processed,
                "errors": self._errors,
                "dropped": self._dropped,
            }
