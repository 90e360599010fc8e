"""Configuración del feed de telemetría.

Un feed = un broker + un topic + umbrales de severidad. Los valores por
defecto reproducen la app móvil original (broker público EMQX por WebSocket).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ...classification.thresholds import SeverityBounds

MAX_PORT_NUMBER = 65535
TRANSPORTS = ("tcp", "websockets")


class FeedConfigError(ValueError):
    """Configuración local inválida (error de setup, no de red)."""


@dataclass(frozen=True)
class FeedConfig:
    """Opciones reconocidas por el núcleo de conexión."""

    broker_host: str = "broker.emqx.io"
    broker_port: int = 8083
    topic: str = "ESILV"
    qos: int = 0

    normal_min: Optional[float] = 1.0
    normal_max: float = 5.0
    warning_max: float = 8.0

    history_capacity: int = 10
    retry_delay: float = 5.0  # segundos
    connect_timeout: float = 3.0  # segundos
    keepalive: int = 60

    transport: str = "websockets"
    ws_path: str = "/mqtt"
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    client_id_prefix: str = "fridge-app"

    @property
    def bounds(self) -> SeverityBounds:
        # Import here to avoid circular imports
        from ...classification.thresholds import SeverityBounds

        return SeverityBounds(
            normal_max=self.normal_max,
            warning_max=self.warning_max,
            normal_min=self.normal_min,
        )

    def validate(self) -> "FeedConfig":
        """Valida la configuración.

        Raises:
            FeedConfigError: si algún valor es inválido
        """
        if not self.broker_host or not self.broker_host.strip():
            raise FeedConfigError("broker_host is required")
        if not isinstance(self.broker_port, int) or not (1 <= self.broker_port <= MAX_PORT_NUMBER):
            raise FeedConfigError(
                f"Invalid broker_port: {self.broker_port}. Must be between 1 and {MAX_PORT_NUMBER}"
            )
        if not self.topic or not self.topic.strip():
            raise FeedConfigError("topic is required")
        if "+" in self.topic or "#" in self.topic:
            raise FeedConfigError(f"topic must not contain wildcards: {self.topic}")
        if self.qos not in (0, 1, 2):
            raise FeedConfigError(f"Invalid qos: {self.qos}. Must be 0, 1, or 2")
        if self.warning_max < self.normal_max:
            raise FeedConfigError(
                f"warning_max ({self.warning_max}) must be >= normal_max ({self.normal_max})"
            )
        if self.normal_min is not None and self.normal_min > self.normal_max:
            raise FeedConfigError(
                f"normal_min ({self.normal_min}) must be <= normal_max ({self.normal_max})"
            )
        if self.history_capacity < 1:
            raise FeedConfigError(f"history_capacity must be >= 1, got {self.history_capacity}")
        if self.retry_delay < 0:
            raise FeedConfigError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.connect_timeout <= 0:
            raise FeedConfigError(f"connect_timeout must be > 0, got {self.connect_timeout}")
        if self.transport not in TRANSPORTS:
            raise FeedConfigError(f"Invalid transport: {self.transport}. Must be one of {TRANSPORTS}")
        return self

    @classmethod
    def from_env(cls) -> "FeedConfig":
        """Lee la configuración desde variables de entorno.

        Raises:
            FeedConfigError: si un valor numérico no se puede parsear
        """
        defaults = cls()
        return cls(
            broker_host=os.getenv("MQTT_BROKER_HOST", defaults.broker_host),
            broker_port=_env_int("MQTT_BROKER_PORT", defaults.broker_port),
            topic=os.getenv("MQTT_TOPIC", defaults.topic),
            qos=_env_int("MQTT_QOS", defaults.qos),
            normal_min=_env_optional_float("FEED_NORMAL_MIN", defaults.normal_min),
            normal_max=_env_float("FEED_NORMAL_MAX", defaults.normal_max),
            warning_max=_env_float("FEED_WARNING_MAX", defaults.warning_max),
            history_capacity=_env_int("FEED_HISTORY_CAPACITY", defaults.history_capacity),
            retry_delay=_env_float("FEED_RETRY_DELAY", defaults.retry_delay),
            connect_timeout=_env_float("MQTT_CONNECT_TIMEOUT", defaults.connect_timeout),
            keepalive=_env_int("MQTT_KEEPALIVE", defaults.keepalive),
            transport=os.getenv("MQTT_TRANSPORT", defaults.transport).strip().lower(),
            ws_path=os.getenv("MQTT_WS_PATH", defaults.ws_path),
            use_tls=os.getenv("MQTT_USE_TLS", "false").strip().lower() in ("true", "1", "yes"),
            username=os.getenv("MQTT_USERNAME") or None,
            password=os.getenv("MQTT_PASSWORD") or None,
            client_id_prefix=os.getenv("MQTT_CLIENT_ID_PREFIX", defaults.client_id_prefix),
        )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise FeedConfigError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        raise FeedConfigError(f"{name} must be a number, got {value!r}")


def _env_optional_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return default
    if not value.strip() or value.strip().lower() == "none":
        return None
    return _env_float(name, 0.0)
