"""Fachada del feed de temperatura para la capa de presentación.

Uso:
    monitor = SensorFeedMonitor(FeedConfig.from_env())
    monitor.start()
    ...
    snap = monitor.snapshot()
    monitor.teardown()
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from .classification.thresholds import SeverityBounds
from .connection.dispatcher import EventDispatcher
from .connection.scheduler import RetryScheduler
from .connection.session_identity import SessionIdentity
from .connection.state_machine import ConnectionStateMachine, ReadingListener, StatusListener
from .core.domain.feed_config import FeedConfig, FeedConfigError
from .core.domain.reading import Reading
from .core.domain.status import ConnectionStatus, SeverityBand
from .core.monitoring.stats import FeedStats
from .core.transport.base import TransportFactory
from .core.transport.mqtt_client import paho_transport_factory
from .core.validation.payload_validator import Clock, PayloadCodec
from .lifecycle.activity import ActivitySource, ActivityState, InProcessActivitySource
from .lifecycle.trigger import LifecycleTrigger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSnapshot:
    """Vista consistente del feed en un instante."""
    status: ConnectionStatus
    latest: Optional[Reading]
    severity: Optional[SeverityBand]
    history: Tuple[Reading, ...]
    client_id: str
    topic: str
    bounds: SeverityBounds
    last_error: Optional[str]
    taken_at: datetime

    @property
    def ready(self) -> bool:
        """Suscrito pero todavía sin lecturas ("waiting for data")."""
        return self.status == ConnectionStatus.SUBSCRIBED and self.latest is None


class SensorFeedMonitor:
    """Una instancia = un feed = un transporte = un historial.

    Responsabilidades:
    - Generar la identidad de sesión (una vez)
    - Construir y cablear máquina de estados, dispatcher y trigger de ciclo de vida
    - Exponer consultas/snapshots a la presentación
    """

    def __init__(
        self,
        config: Optional[FeedConfig] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        scheduler: Optional[RetryScheduler] = None,
        activity_source: Optional[ActivitySource] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        use_dispatcher: bool = True,
    ):
        config_error: Optional[FeedConfigError] = None
        if config is None:
            try:
                config = FeedConfig.from_env()
            except FeedConfigError as e:
                # La máquina arranca en failed; el resto usa los valores por defecto
                config_error = e
                config = FeedConfig()

        self._config = config
        self._identity = SessionIdentity.generate(self._config.client_id_prefix, rng)
        self._dispatcher = EventDispatcher() if use_dispatcher else None

        self._machine = ConnectionStateMachine(
            self._config,
            self._identity.client_id,
            transport_factory or paho_transport_factory,
            scheduler=scheduler,
            dispatcher=self._dispatcher,
            codec=PayloadCodec(clock),
            config_error=config_error,
        )

        self._activity = activity_source or InProcessActivitySource()
        self._lifecycle = LifecycleTrigger(self._machine, self._activity)

    # Comandos

    def start(self) -> None:
        if self._dispatcher is not None:
            self._dispatcher.start()
        self._lifecycle.start()
        logger.info(
            "[FEED] Starting monitor client_id=%s topic=%s broker=%s:%d",
            self._identity.client_id,
            self._config.topic,
            self._config.broker_host,
            self._config.broker_port,
        )
        self._machine.start()

    def reconnect(self, reason: str = "manual") -> None:
        self._machine.reconnect(reason)

    def reset(self) -> None:
        """Limpia historial y última lectura sin tocar la conexión."""
        self._machine.reset()

    def teardown(self) -> None:
        """Libera el transporte y detiene el worker. Idempotente."""
        self._lifecycle.stop()
        self._machine.teardown()
        if self._dispatcher is not None:
            self._dispatcher.stop()

    def notify_activity(self, state: ActivityState) -> None:
        """Entrega una señal de actividad del host a la fuente in-process."""
        if not isinstance(self._activity, InProcessActivitySource):
            raise TypeError("activity source does not accept programmatic signals")
        self._activity.emit(state)

    # Consultas

    def current_status(self) -> ConnectionStatus:
        return self._machine.status

    def latest_reading(self) -> Optional[Reading]:
        return self._machine.latest_reading

    def history_snapshot(self) -> Tuple[Reading, ...]:
        return self._machine.history_snapshot()

    def severity(self, reading: Optional[Reading] = None) -> Optional[SeverityBand]:
        return self._machine.severity(reading)

    def snapshot(self) -> FeedSnapshot:
        with self._machine.lock:
            latest = self._machine.latest_reading
            return FeedSnapshot(
                status=self._machine.status,
                latest=latest,
                severity=self._machine.severity(latest) if latest is not None else None,
                history=self._machine.history_snapshot(),
                client_id=self._identity.client_id,
                topic=self._config.topic,
                bounds=self._machine.bounds,
                last_error=self._machine.last_error,
                taken_at=datetime.now(timezone.utc),
            )

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        return self._machine.add_status_listener(listener)

    def add_reading_listener(self, listener: ReadingListener) -> Callable[[], None]:
        return self._machine.add_reading_listener(listener)

    @property
    def client_id(self) -> str:
        return self._identity.client_id

    @property
    def topic(self) -> str:
        return self._config.topic

    @property
    def config(self) -> FeedConfig:
        return self._config

    @property
    def bounds(self) -> SeverityBounds:
        return self._machine.bounds

    @property
    def lifecycle(self) -> LifecycleTrigger:
        return self._lifecycle

    @property
    def stats(self) -> FeedStats:
        return self._machine.stats

    def health_check(self) -> dict:
        status = self._machine.status
        return {
            "healthy": status == ConnectionStatus.SUBSCRIBED,
            "status": status.value,
            "client_id": self._identity.client_id,
            "broker": f"{self._config.broker_host}:{self._config.broker_port}",
            "topic": self._config.topic,
            "last_error": self._machine.last_error,
            "stats": self._machine.stats.to_dict(),
            "dispatcher": self._dispatcher.metrics if self._dispatcher is not None else None,
        }


# Singleton de proceso (lo usa la app HTTP)
_monitor: Optional[SensorFeedMonitor] = None


def get_monitor() -> Optional[SensorFeedMonitor]:
    """Obtiene el monitor del proceso."""
    return _monitor


def start_monitor(config: Optional[FeedConfig] = None) -> SensorFeedMonitor:
    """Crea e inicia el monitor del proceso (si no existe)."""
    global _monitor

    if _monitor is not None:
        return _monitor

    _monitor = SensorFeedMonitor(config)
    _monitor.start()
    return _monitor


def stop_monitor() -> None:
    """Detiene el monitor del proceso."""
    global _monitor

    if _monitor is not None:
        _monitor.teardown()
        _monitor = None
