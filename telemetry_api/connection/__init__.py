"""Gestión de la conexión con el broker.

Estructura modular:
- state_machine.py: ciclo de vida del enlace + ingesta de frames
- dispatcher.py: canal de eventos de un solo worker
- scheduler.py: timers cancelables (reintento, timeout de conexión)
- session_identity.py: client id estable por instancia
"""

from .dispatcher import EventDispatcher
from .scheduler import RetryScheduler, ThreadingScheduler, TimerHandle
from .session_identity import SessionIdentity, generate_client_id
from .state_machine import ConnectionStateMachine

__all__ = [
    "ConnectionStateMachine",
    "EventDispatcher",
    "RetryScheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "SessionIdentity",
    "generate_client_id",
]
