"""Fixtures compartidas: transporte falso, scheduler manual y reloj controlado.

Ningún test abre sockets: los eventos del broker se inyectan a mano con
`FakeTransport.ack_connect()`, `deliver()`, `lose()`, etc.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from telemetry_api.connection.scheduler import RetryScheduler, TimerHandle
from telemetry_api.connection.state_machine import ConnectionStateMachine
from telemetry_api.core.domain.feed_config import FeedConfig
from telemetry_api.core.transport.base import (
    EventListener,
    Transport,
    TransportEvent,
    TransportEventType,
)
from telemetry_api.core.validation.payload_validator import PayloadCodec

CLIENT_ID = "fridge-app-0000abcd"
BASE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# TRANSPORTE FALSO
# =============================================================================

class FakeTransport(Transport):
    """Transporte en memoria que registra llamadas y emite eventos a demanda."""

    def __init__(
        self,
        config: FeedConfig,
        client_id: str,
        listener: EventListener,
        *,
        connect_error: Optional[Exception] = None,
        subscribe_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ):
        self.config = config
        self.client_id = client_id
        self.listener = listener
        self.connect_error = connect_error
        self.subscribe_error = subscribe_error
        self.close_error = close_error

        self.connect_calls = 0
        self.subscriptions: List[tuple] = []
        self.closed = False
        self._connected = False

    def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error

    def subscribe(self, topic: str, qos: int = 0) -> None:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscriptions.append((topic, qos))

    def close(self) -> None:
        self.closed = True
        self._connected = False
        if self.close_error is not None:
            raise self.close_error

    @property
    def is_connected(self) -> bool:
        return self._connected

    # Simulación del broker

    def emit(self, event: TransportEvent) -> None:
        self.listener(event)

    def ack_connect(self) -> None:
        self._connected = True
        self.emit(TransportEvent(TransportEventType.CONNECTED))

    def refuse_connect(self, reason: str = "not authorized") -> None:
        self.emit(TransportEvent(TransportEventType.CONNECT_FAILED, reason=reason))

    def ack_subscribe(self) -> None:
        self.emit(TransportEvent(TransportEventType.SUBSCRIBED))

    def refuse_subscribe(self, reason: str = "not authorized") -> None:
        self.emit(TransportEvent(TransportEventType.SUBSCRIBE_FAILED, reason=reason))

    def lose(self, reason: str = "keepalive timeout") -> None:
        self._connected = False
        self.emit(TransportEvent(TransportEventType.CONNECTION_LOST, reason=reason))

    def deliver(self, payload, topic: str = "ESILV") -> None:
        if isinstance(payload, str):
            payload = payload.encode()
        self.emit(TransportEvent.message(payload, topic=topic))


class FakeTransportFactory:
    """Factory que recuerda cada transporte construido."""

    def __init__(self):
        self.created: List[FakeTransport] = []
        self.setup_error: Optional[Exception] = None
        self.connect_error: Optional[Exception] = None
        self.subscribe_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None

    def __call__(self, config: FeedConfig, client_id: str, listener: EventListener) -> FakeTransport:
        if self.setup_error is not None:
            raise self.setup_error
        transport = FakeTransport(
            config,
            client_id,
            listener,
            connect_error=self.connect_error,
            subscribe_error=self.subscribe_error,
            close_error=self.close_error,
        )
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


# =============================================================================
# SCHEDULER MANUAL
# =============================================================================

class ManualTimer(TimerHandle):
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired


class ManualScheduler(RetryScheduler):
    """Los timers solo disparan cuando el test llama a `fire()`."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [t for t in self.timers if t.pending]

    def fire(self, delay: Optional[float] = None) -> int:
        """Dispara los timers pendientes (opcionalmente solo los de `delay`)."""
        fired = 0
        for timer in list(self.pending):
            if delay is not None and timer.delay != delay:
                continue
            # Un callback previo pudo cancelarlo
            if not timer.pending:
                continue
            timer.fired = True
            timer.callback()
            fired += 1
        return fired


class SteppingClock:
    """Reloj que avanza un segundo en cada lectura."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)):
        self._now = start
        self._step = step

    def __call__(self) -> datetime:
        now = self._now
        self._now += self._step
        return now


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def feed_config() -> FeedConfig:
    """Configuración por defecto (umbrales 1/5/8, retry 5s, timeout 3s)."""
    return FeedConfig()


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def make_machine(factory, scheduler, clock):
    """Construye máquinas síncronas (sin dispatcher) con la config dada."""

    def _make(config: Optional[FeedConfig] = None) -> ConnectionStateMachine:
        return ConnectionStateMachine(
            config or FeedConfig(),
            CLIENT_ID,
            factory,
            scheduler=scheduler,
            codec=PayloadCodec(clock),
        )

    return _make


@pytest.fixture
def machine(make_machine) -> ConnectionStateMachine:
    return make_machine()


@pytest.fixture
def subscribed_machine(machine, factory) -> ConnectionStateMachine:
    """Máquina ya suscrita al topic."""
    machine.start()
    factory.last.ack_connect()
    factory.last.ack_subscribe()
    return machine
