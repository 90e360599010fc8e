"""Máquina de estados de la conexión con el broker.

Transiciones:
  disconnected        --start()-->                 connecting
  connecting          --CONNACK ok-->              connected
  connecting          --refused/timeout/loss-->    reconnect_scheduled
  connected           --SUBACK ok-->               subscribed
  connected           --subscribe error-->         reconnect_scheduled
  connected|subscribed --loss-->                   lost --> reconnect_scheduled
  reconnect_scheduled --timer-->                   connecting
  *                   --setup error-->             failed
  failed              --start()-->                 disconnected --> connecting
  *                   --teardown()-->              disconnected
  *                   --reconnect()-->             connecting (teardown previo)

La reconexión automática nunca se abandona; solo un error local de setup
(configuración inválida, fallo al construir el transporte) lleva a `failed`.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional

from ..classification.thresholds import SeverityBounds, classify
from ..core.domain.feed_config import FeedConfig, FeedConfigError
from ..core.domain.reading import Reading
from ..core.domain.status import ConnectionStatus, SeverityBand
from ..core.history.history_buffer import HistoryBuffer, HistorySnapshot
from ..core.monitoring import metrics
from ..core.monitoring.stats import FeedStats
from ..core.transport.base import (
    EventListener,
    Transport,
    TransportError,
    TransportEvent,
    TransportEventType,
    TransportFactory,
)
from ..core.validation.payload_validator import PayloadCodec
from .dispatcher import EventDispatcher
from .scheduler import RetryScheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)

StatusListener = Callable[[ConnectionStatus, ConnectionStatus], None]
ReadingListener = Callable[[Reading, SeverityBand], None]


class ConnectionStateMachine:
    """Dueño del ciclo de vida del enlace con el broker y del historial.

    Responsabilidades:
    - Abrir/cerrar el transporte (nunca dos activos a la vez)
    - Suscribirse al topic del feed
    - Detectar pérdida y programar reintentos (delay fijo)
    - Ingerir frames: codec → historial → clasificación
    - Exponer estado, última lectura e historial

    Todos los puntos de entrada toman el mismo RLock. Los eventos del
    transporte y de los timers llevan la generación del transporte que los
    originó; los de generaciones anteriores se ignoran.

    Con `dispatcher` los eventos se procesan en su worker; sin él se procesan
    en línea (tests).
    """

    def __init__(
        self,
        config: FeedConfig,
        client_id: str,
        transport_factory: TransportFactory,
        *,
        scheduler: Optional[RetryScheduler] = None,
        dispatcher: Optional[EventDispatcher] = None,
        codec: Optional[PayloadCodec] = None,
        config_error: Optional[FeedConfigError] = None,
    ):
        self._config = config
        self._client_id = client_id
        self._factory = transport_factory
        self._scheduler = scheduler or ThreadingScheduler()
        self._dispatcher = dispatcher
        self._codec = codec or PayloadCodec()

        # config_error: fallo previo al leer la configuración (p.ej. from_env)
        self._config_error: Optional[FeedConfigError] = config_error
        if self._config_error is None:
            try:
                config.validate()
            except FeedConfigError as e:
                self._config_error = e
        if self._config_error is not None:
            logger.error("[FEED] Invalid configuration: %s", self._config_error)

        capacity = config.history_capacity if self._config_error is None else 1
        self._history = HistoryBuffer(capacity)
        self._bounds: SeverityBounds = config.bounds

        self._lock = threading.RLock()
        self._status = ConnectionStatus.DISCONNECTED
        self._transport: Optional[Transport] = None
        self._generation = 0
        self._retry_handle: Optional[TimerHandle] = None
        self._timeout_handle: Optional[TimerHandle] = None
        self._latest: Optional[Reading] = None
        self._last_error: Optional[str] = None

        self._status_listeners: List[StatusListener] = []
        self._reading_listeners: List[ReadingListener] = []
        self._stats = FeedStats()

        metrics.record_status(self._status)

    # ------------------------------------------------------------------
    # Comandos
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Inicia la conexión. Desde `failed` pasa antes por `disconnected`."""
        with self._lock:
            if self._status == ConnectionStatus.FAILED:
                logger.info("[FEED] Manual restart after failure")
                self._set_status(ConnectionStatus.DISCONNECTED)
            if self._status != ConnectionStatus.DISCONNECTED:
                logger.debug("[FEED] start() ignored, status=%s", self._status.value)
                return
            self._open_transport()

    def reconnect(self, reason: str = "manual") -> None:
        """Teardown + reconexión inmediata, sea cual sea el estado actual."""
        with self._lock:
            logger.info("[FEED] Forced reconnect (reason=%s, status=%s)", reason, self._status.value)
            self._stats.forced_reconnects += 1
            metrics.record_reconnect(reason)
            self._open_transport()

    def teardown(self) -> None:
        """Libera el transporte y cancela timers. Idempotente."""
        with self._lock:
            self._cancel_timers()
            self._close_transport()
            self._set_status(ConnectionStatus.DISCONNECTED)

    def reset(self) -> None:
        """Vacía historial y última lectura. No toca la conexión."""
        with self._lock:
            self._history.reset()
            self._latest = None
            logger.info("[FEED] History reset")

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        with self._lock:
            return self._status

    @property
    def latest_reading(self) -> Optional[Reading]:
        with self._lock:
            return self._latest

    def history_snapshot(self) -> HistorySnapshot:
        return self._history.snapshot()

    def severity(self, reading: Optional[Reading] = None) -> Optional[SeverityBand]:
        """Banda de la lectura dada (por defecto la última). None sin lecturas."""
        target = reading if reading is not None else self.latest_reading
        if target is None:
            return None
        return classify(target.value, self._bounds)

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def config(self) -> FeedConfig:
        return self._config

    @property
    def bounds(self) -> SeverityBounds:
        return self._bounds

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    @property
    def stats(self) -> FeedStats:
        return self._stats

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        with self._lock:
            self._status_listeners.append(listener)
        return lambda: self._remove(self._status_listeners, listener)

    def add_reading_listener(self, listener: ReadingListener) -> Callable[[], None]:
        with self._lock:
            self._reading_listeners.append(listener)
        return lambda: self._remove(self._reading_listeners, listener)

    # ------------------------------------------------------------------
    # Eventos
    # ------------------------------------------------------------------

    def handle_event(self, generation: int, event: TransportEvent) -> None:
        """Procesa un evento del transporte de la generación indicada."""
        with self._lock:
            if generation != self._generation:
                logger.debug("[FEED] Stale event %s (gen=%d, current=%d)",
                             event.type.value, generation, self._generation)
                return

            if event.type == TransportEventType.MESSAGE:
                self._ingest(event.payload, event.topic)
            elif event.type == TransportEventType.CONNECTED:
                self._on_connected()
            elif event.type == TransportEventType.CONNECT_FAILED:
                if self._status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
                    self._schedule_retry(f"connect failed: {event.reason}")
            elif event.type == TransportEventType.SUBSCRIBED:
                if self._status == ConnectionStatus.CONNECTED:
                    self._set_status(ConnectionStatus.SUBSCRIBED)
                    logger.info("[FEED] Subscribed to %s as %s", self._config.topic, self._client_id)
            elif event.type == TransportEventType.SUBSCRIBE_FAILED:
                if self._status == ConnectionStatus.CONNECTED:
                    self._schedule_retry(f"subscribe failed: {event.reason}")
            elif event.type == TransportEventType.CONNECTION_LOST:
                self._on_connection_lost(event.reason)

    def _on_connected(self) -> None:
        if self._status != ConnectionStatus.CONNECTING:
            logger.debug("[FEED] CONNECTED ignored, status=%s", self._status.value)
            return
        self._cancel_timeout()
        self._set_status(ConnectionStatus.CONNECTED)
        try:
            self._transport.subscribe(self._config.topic, self._config.qos)
        except Exception as e:
            logger.warning("[FEED] Subscribe error: %s", e)
            self._schedule_retry(f"subscribe error: {e}")

    def _on_connection_lost(self, reason: Optional[str]) -> None:
        if self._status.is_linked:
            self._stats.connection_losses += 1
            self._set_status(ConnectionStatus.LOST)
            self._schedule_retry(f"connection lost: {reason}")
        elif self._status == ConnectionStatus.CONNECTING:
            self._schedule_retry(f"connection lost while connecting: {reason}")

    def _on_retry_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._status != ConnectionStatus.RECONNECT_SCHEDULED:
                return
            self._retry_handle = None
            self._stats.reconnects += 1
            metrics.record_reconnect("retry")
            logger.info("[FEED] Retry timer fired, reconnecting")
            self._open_transport()

    def _on_connect_timeout(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._status != ConnectionStatus.CONNECTING:
                return
            self._timeout_handle = None
            logger.warning("[FEED] Connect timeout after %.1fs", self._config.connect_timeout)
            self._schedule_retry("connect timeout")

    def _ingest(self, payload: Optional[bytes], topic: Optional[str]) -> None:
        self._stats.received += 1
        self._stats.last_message_at = time.time()

        result = self._codec.parse(payload if payload is not None else b"")
        if not result.accepted:
            self._stats.rejected[result.reason] += 1
            metrics.record_message(result.reason.value)
            logger.warning("[FEED] Payload dropped: %s (topic=%s)", result.error, topic)
            return

        reading = result.reading
        self._history.append(reading)
        self._latest = reading
        band = classify(reading.value, self._bounds)
        self._stats.accepted += 1
        metrics.record_message("accepted")
        metrics.record_temperature(reading.value)
        logger.debug("[FEED] Reading %.2f -> %s", reading.value, band.value)

        for listener in list(self._reading_listeners):
            self._notify(listener, reading, band)

    # ------------------------------------------------------------------
    # Internos (siempre con el lock tomado)
    # ------------------------------------------------------------------

    def _open_transport(self) -> None:
        self._cancel_timers()
        self._close_transport()

        if self._config_error is not None:
            self._fail(f"invalid configuration: {self._config_error}")
            return

        self._set_status(ConnectionStatus.CONNECTING)
        self._stats.connect_attempts += 1
        generation = self._generation

        try:
            transport = self._factory(self._config, self._client_id, self._listener_for(generation))
        except Exception as e:
            logger.exception("[FEED] Transport setup failed: %s", e)
            self._fail(f"transport setup failed: {e}")
            return

        self._transport = transport
        self._timeout_handle = self._scheduler.schedule(
            self._config.connect_timeout,
            lambda: self._post(self._on_connect_timeout, generation),
        )

        try:
            transport.connect()
        except (OSError, TransportError) as e:
            logger.warning("[FEED] Connect error: %s", e)
            self._schedule_retry(f"connect error: {e}")
        except Exception as e:
            logger.exception("[FEED] Connect setup error: %s", e)
            self._fail(f"connect setup error: {e}")

    def _schedule_retry(self, reason: str) -> None:
        self._cancel_timers()
        self._close_transport()
        self._last_error = reason
        self._set_status(ConnectionStatus.RECONNECT_SCHEDULED)

        generation = self._generation
        self._retry_handle = self._scheduler.schedule(
            self._config.retry_delay,
            lambda: self._post(self._on_retry_timer, generation),
        )
        logger.info("[FEED] Reconnect in %.1fs (%s)", self._config.retry_delay, reason)

    def _fail(self, reason: str) -> None:
        self._cancel_timers()
        self._close_transport()
        self._last_error = reason
        self._stats.setup_failures += 1
        self._set_status(ConnectionStatus.FAILED)
        logger.error("[FEED] Failed: %s (manual start() required)", reason)

    def _close_transport(self) -> None:
        # Invalida eventos en vuelo del transporte anterior
        self._generation += 1
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            transport.close()
        except Exception as e:
            logger.warning("[FEED] Error closing transport (ignored): %s", e)

    def _cancel_timers(self) -> None:
        self._cancel_timeout()
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _set_status(self, new: ConnectionStatus) -> None:
        old = self._status
        if new == old:
            return
        self._status = new
        metrics.record_status(new)
        logger.info("[FEED] %s -> %s", old.value, new.value)
        for listener in list(self._status_listeners):
            self._notify(listener, old, new)

    def _listener_for(self, generation: int) -> EventListener:
        return lambda event: self._post(self.handle_event, generation, event)

    def _post(self, func: Callable[..., Any], *args: Any) -> None:
        if self._dispatcher is not None:
            self._dispatcher.submit(func, *args)
        else:
            func(*args)

    @staticmethod
    def _notify(listener: Callable[..., None], *args: Any) -> None:
        try:
            listener(*args)
        except Exception as e:
            logger.warning("[FEED] Listener error (ignored): %s", e)

    def _remove(self, listeners: list, listener: Callable[..., None]) -> None:
        with self._lock:
            if listener in listeners:
                listeners.remove(listener)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation
