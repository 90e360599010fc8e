"""Métricas Prometheus del feed."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

from ..domain.status import ConnectionStatus

FEED_MESSAGES = Counter(
    "feed_messages_total",
    "Total frames received by the telemetry feed",
    ["outcome"],  # accepted, malformed_payload, missing_field, not_a_number
)
FEED_RECONNECTS = Counter(
    "feed_reconnects_total",
    "Connection attempts after the first one",
    ["trigger"],  # retry, resume, manual
)
FEED_CONNECTION_STATUS = Gauge(
    "feed_connection_status",
    "1 for the current connection status, 0 otherwise",
    ["status"],
)
FEED_LAST_TEMPERATURE = Gauge(
    "feed_last_temperature_celsius",
    "Last accepted temperature reading",
)


def record_message(outcome: str) -> None:
    FEED_MESSAGES.labels(outcome=outcome).inc()


def record_reconnect(trigger: str) -> None:
    FEED_RECONNECTS.labels(trigger=trigger).inc()


def record_status(status: ConnectionStatus) -> None:
    for candidate in ConnectionStatus:
        FEED_CONNECTION_STATUS.labels(status=candidate.value).set(1 if candidate == status else 0)


def record_temperature(value: float) -> None:
    FEED_LAST_TEMPERATURE.set(value)
