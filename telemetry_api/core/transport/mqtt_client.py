"""Transporte MQTT sobre paho-mqtt.

Traduce los callbacks de paho (hilo de red) a `TransportEvent`s. Los callbacks
solo delegan al listener: nunca bloquean ni tocan estado de la máquina.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import paho.mqtt.client as mqtt

from .base import EventListener, Transport, TransportError, TransportEvent, TransportEventType

if TYPE_CHECKING:
    from ..domain.feed_config import FeedConfig

logger = logging.getLogger(__name__)


class PahoTransport(Transport):
    """Una sesión paho-mqtt contra el broker del feed.

    Responsabilidades:
    - Construcción del cliente (tcp o websockets, TLS opcional)
    - Conexión no bloqueante (connect_async + loop_start)
    - Suscripción y traducción de SUBACK
    - Delegación de mensajes y desconexiones al listener
    """

    def __init__(self, config: "FeedConfig", client_id: str, listener: EventListener):
        self._config = config
        self._listener = listener
        self._closing = False
        self._connected = False
        self._subscribe_mid: Optional[int] = None

        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
            transport=config.transport,
        )
        if config.transport == "websockets":
            self._client.ws_set_options(path=config.ws_path)
        if config.use_tls:
            self._client.tls_set()
        if config.username and config.password:
            self._client.username_pw_set(config.username, config.password)

        self._client.on_connect = self._on_connect
        self._client.on_connect_fail = self._on_connect_fail
        self._client.on_disconnect = self._on_disconnect
        self._client.on_subscribe = self._on_subscribe
        self._client.on_message = self._on_message

    def connect(self) -> None:
        logger.info(
            "[MQTT] Connecting to %s:%d (%s%s)",
            self._config.broker_host,
            self._config.broker_port,
            self._config.transport,
            self._config.ws_path if self._config.transport == "websockets" else "",
        )
        self._client.connect_async(
            self._config.broker_host,
            self._config.broker_port,
            keepalive=self._config.keepalive,
        )
        rc = self._client.loop_start()
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"loop_start failed: {mqtt.error_string(rc)}")

    def subscribe(self, topic: str, qos: int = 0) -> None:
        result, mid = self._client.subscribe(topic, qos=qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"subscribe({topic}) failed: {mqtt.error_string(result)}")
        self._subscribe_mid = mid
        logger.info("[MQTT] Subscribe sent topic=%s qos=%d mid=%s", topic, qos, mid)

    def close(self) -> None:
        self._closing = True
        self._connected = False
        try:
            self._client.disconnect()
        finally:
            self._client.loop_stop()
        logger.debug("[MQTT] Transport closed")

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _emit(self, event: TransportEvent) -> None:
        if self._closing:
            return
        self._listener(event)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión (CONNACK)."""
        if reason_code.is_failure:
            self._connected = False
            logger.error("[MQTT] Connection refused: %s", reason_code)
            self._emit(TransportEvent(TransportEventType.CONNECT_FAILED, reason=str(reason_code)))
        else:
            self._connected = True
            logger.info("[MQTT] Connected to broker")
            self._emit(TransportEvent(TransportEventType.CONNECTED))

    def _on_connect_fail(self, client, userdata):
        """Callback de fallo de conexión a nivel socket."""
        self._connected = False
        logger.warning("[MQTT] Connection attempt failed")
        self._emit(TransportEvent(TransportEventType.CONNECT_FAILED, reason="socket connect failed"))

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected = False
        if self._closing:
            return
        logger.warning("[MQTT] Disconnected (rc=%s)", reason_code)
        self._emit(TransportEvent(TransportEventType.CONNECTION_LOST, reason=str(reason_code)))

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        """Callback de SUBACK."""
        if self._subscribe_mid is not None and mid != self._subscribe_mid:
            return
        failures = [rc for rc in reason_code_list if rc.is_failure]
        if failures:
            logger.error("[MQTT] Subscribe refused: %s", failures[0])
            self._emit(TransportEvent(TransportEventType.SUBSCRIBE_FAILED, reason=str(failures[0])))
        else:
            logger.info("[MQTT] Subscription acknowledged mid=%s", mid)
            self._emit(TransportEvent(TransportEventType.SUBSCRIBED))

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al listener."""
        self._emit(TransportEvent.message(msg.payload, topic=msg.topic))


def paho_transport_factory(config: "FeedConfig", client_id: str, listener: EventListener) -> Transport:
    return PahoTransport(config, client_id, listener)
