"""Cliente MQTT del hub.

Responsabilidades:
- Conexión al broker con reconexión automática (intervalo fijo, sin límite)
- Suscripción idempotente a los topics configurados en cada (re)conexión
- Entrega de cada mensaje al ``MessageChannel`` en orden de llegada
- Publicación fire-and-forget (comandos de control)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Set, Tuple

import paho.mqtt.client as mqtt

from .channel import BrokerMessage, MessageChannel
from .receiver_stats import ReceiverStats

logger = logging.getLogger(__name__)

SUBSCRIBE_QOS = 1


@dataclass(frozen=True)
class PublishResult:
    """Resultado explícito de una publicación."""
    ok: bool
    topic: str
    rc: int
    mid: Optional[int] = None


@dataclass(frozen=True)
class SubscribeResult:
    topic: str
    ok: bool
    rc: int
    mid: Optional[int] = None


class BrokerClient:
    """Cliente MQTT que alimenta el canal de ingesta."""

    def __init__(
        self,
        channel: MessageChannel[BrokerMessage],
        topics: Iterable[str],
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "web-server",
        reconnect_seconds: float = 2.0,
        client_factory: Optional[Callable[[str], mqtt.Client]] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = f"{client_id}-{int(time.time() * 1000)}"
        self.reconnect_seconds = reconnect_seconds
        self.topics: Tuple[str, ...] = tuple(dict.fromkeys(topics))

        self._channel = channel
        self._client_factory = client_factory or self._default_client
        self._client: Optional[mqtt.Client] = None
        self._running = False
        self._connected = False
        self._has_connected_once = False

        self._lock = threading.Lock()
        self._pending_subs: Dict[int, str] = {}
        self._subscribed: Set[str] = set()

        self._stats = ReceiverStats()

    def _default_client(self, client_id: str) -> mqtt.Client:
        return mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
            clean_session=True,
        )

    def start(self) -> None:
        """Inicia la conexión en segundo plano.

        No bloquea: si el broker no está disponible, el loop de paho
        reintenta cada ``reconnect_seconds`` indefinidamente.
        """
        if self._running:
            return

        self._client = self._client_factory(self.client_id)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_subscribe = self._on_subscribe
        self._client.on_message = self._on_message
        self._client.reconnect_delay_set(
            min_delay=self.reconnect_seconds,
            max_delay=self.reconnect_seconds,
        )

        if self.username and self.password:
            self._client.username_pw_set(self.username, self.password)

        logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)
        self._client.connect_async(self.broker_host, self.broker_port, keepalive=60)
        self._client.loop_start()
        self._running = True

    def stop(self) -> None:
        """Cierra la conexión con el broker."""
        self._running = False

        if self._client:
            try:
                self._client.disconnect()
                self._client.loop_stop()
            except Exception as e:
                logger.warning("[MQTT] Error stopping: %s", e)

        self._connected = False
        logger.info("[MQTT] Stopped. %s", self._stats)

    def _on_connect(self, client, userdata, flags, rc, properties=None):
        """Callback de conexión: (re)suscribe todos los topics."""
        if rc != 0:
            self._connected = False
            logger.error("[MQTT] Connection failed: rc=%s", rc)
            return

        self._connected = True
        if self._has_connected_once:
            self._stats.reconnects += 1
            logger.info("[MQTT] Reconnected to broker (reconnects=%d)", self._stats.reconnects)
        else:
            logger.info("[MQTT] Connected to broker")
        self._has_connected_once = True

        with self._lock:
            self._pending_subs.clear()
            self._subscribed.clear()

        for topic in self.topics:
            self._subscribe(client, topic)

    def _subscribe(self, client, topic: str) -> SubscribeResult:
        try:
            rc, mid = client.subscribe(topic, qos=SUBSCRIBE_QOS)
        except Exception as e:
            logger.error("[MQTT] Subscribe failed %s: %s", topic, e)
            return SubscribeResult(topic=topic, ok=False, rc=-1)

        if rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error("[MQTT] Subscribe failed %s: rc=%s", topic, rc)
            return SubscribeResult(topic=topic, ok=False, rc=rc, mid=mid)

        with self._lock:
            self._pending_subs[mid] = topic
        logger.debug("[MQTT] Subscribe sent %s (mid=%s)", topic, mid)
        return SubscribeResult(topic=topic, ok=True, rc=rc, mid=mid)

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        """Callback de SUBACK."""
        with self._lock:
            topic = self._pending_subs.pop(mid, None)
        if topic is None:
            return

        failed = [rc for rc in reason_code_list if getattr(rc, "is_failure", False)]
        if failed:
            logger.error("[MQTT] Subscribe rejected %s: %s", topic, failed[0])
            return

        with self._lock:
            self._subscribed.add(topic)
        logger.info("[MQTT] Subscribed: %s", topic)

    def _on_disconnect(self, client, userdata, flags, rc, properties=None):
        """Callback de desconexión; paho reintenta por su cuenta."""
        self._connected = False
        with self._lock:
            self._pending_subs.clear()
            self._subscribed.clear()
        if self._running:
            logger.warning(
                "[MQTT] Disconnected (rc=%s), retrying every %.1fs",
                rc,
                self.reconnect_seconds,
            )

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje: lo entrega al canal sin filtrar."""
        self._stats.received += 1
        self._stats.last_message_at = time.time()

        if not self._channel.put(BrokerMessage(topic=msg.topic, payload=bytes(msg.payload))):
            # Solo ocurre con el canal cerrado (shutdown)
            self._stats.failed += 1
            logger.warning("[MQTT] Channel closed, message not delivered (topic=%s)", msg.topic)

    def publish(self, topic: str, payload: bytes | str, qos: int = 1) -> PublishResult:
        """Publica sin esperar confirmación del broker."""
        if self._client is None:
            logger.warning("[MQTT] Publish without client (topic=%s)", topic)
            return PublishResult(ok=False, topic=topic, rc=mqtt.MQTT_ERR_NO_CONN)

        try:
            info = self._client.publish(topic, payload, qos=qos)
        except Exception as e:
            logger.error("[MQTT] Publish failed %s: %s", topic, e)
            return PublishResult(ok=False, topic=topic, rc=mqtt.MQTT_ERR_UNKNOWN)

        ok = info.rc == mqtt.MQTT_ERR_SUCCESS
        if ok:
            self._stats.published += 1
        else:
            logger.warning("[MQTT] Publish not queued %s: rc=%s", topic, info.rc)
        return PublishResult(ok=ok, topic=topic, rc=info.rc, mid=info.mid)

    @property
    def subscribed_topics(self) -> Set[str]:
        with self._lock:
            return set(self._subscribed)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "connected": self._connected,
            "broker": f"{self.broker_host}:{self.broker_port}",
            "topics": list(self.topics),
            "subscribed": sorted(self.subscribed_topics),
            **self._stats.to_dict(),
        }

    def health_check(self) -> dict:
        return {
            "healthy": self._running and self._connected,
            "running": self._running,
            "connected": self._connected,
            "reconnects": self._stats.reconnects,
            "messages_received": self._stats.received,
        }
