"""Dueño explícito del estado del hub.

Construye y conecta los componentes para un proceso:

  BrokerClient → MessageChannel → TelemetryPipeline → Store/Registry → Broadcaster

y define el orden de arranque y parada.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from common.config import Settings
from ..mqtt.channel import BrokerMessage, MessageChannel
from ..mqtt.client import BrokerClient
from ..mqtt.control import ControlPublisher
from ..mqtt.normalizer import MessageNormalizer
from ..queries.telemetry import TelemetryQueries
from ..realtime.broadcaster import Broadcaster
from ..store.device_registry import DeviceRegistry
from ..store.telemetry_store import TelemetryStore
from .pipeline import TelemetryPipeline

logger = logging.getLogger(__name__)


class TelemetryHub:
    """Agrupa los componentes y su ciclo de vida."""

    def __init__(
        self,
        settings: Settings,
        client_factory: Optional[Callable[[str], mqtt.Client]] = None,
    ):
        self.settings = settings
        self.started_at = time.monotonic()

        self.channel: MessageChannel[BrokerMessage] = MessageChannel(settings.mqtt_channel_max_size)
        self.store = TelemetryStore(max_history=settings.max_history)
        self.registry = DeviceRegistry()
        self.broadcaster = Broadcaster(self.store, queue_size=settings.ws_queue_size)
        self.normalizer = MessageNormalizer()
        self.pipeline = TelemetryPipeline(
            normalizer=self.normalizer,
            store=self.store,
            registry=self.registry,
            broadcaster=self.broadcaster,
        )

        self.broker = BrokerClient(
            channel=self.channel,
            topics=settings.topics,
            broker_host=settings.mqtt_broker_host,
            broker_port=settings.mqtt_broker_port,
            username=settings.mqtt_username,
            password=settings.mqtt_password,
            client_id=settings.mqtt_client_id,
            reconnect_seconds=settings.mqtt_reconnect_seconds,
            client_factory=client_factory,
        )
        self.control = ControlPublisher(self.broker)
        self.queries = TelemetryQueries(
            store=self.store,
            registry=self.registry,
            broadcaster=self.broadcaster,
            broker=self.broker,
            control=self.control,
        )

        self._ingest_task: Optional["asyncio.Task[None]"] = None

    async def start(self) -> None:
        """Arranca la ingesta y la conexión al broker (no bloquea)."""
        if self._ingest_task is not None:
            return
        self._ingest_task = asyncio.create_task(self.pipeline.run(self.channel))
        self.broker.start()
        logger.info(
            "[HUB] Started: broker=%s:%d topics=%s max_history=%d",
            self.settings.mqtt_broker_host,
            self.settings.mqtt_broker_port,
            ",".join(self.settings.topics),
            self.settings.max_history,
        )

    async def shutdown(self) -> None:
        """Parada ordenada: canal, broker, ingesta, suscriptores.

        El canal se cierra primero para liberar al hilo de paho si está
        bloqueado en un put; ``loop_stop`` espera a ese hilo y se ejecuta
        fuera del event loop.
        """
        logger.info("[HUB] Shutting down")
        self.channel.close()
        await asyncio.to_thread(self.broker.stop)

        if self._ingest_task is not None:
            await self._ingest_task
            self._ingest_task = None

        await self.broadcaster.close()
        logger.info("[HUB] Shutdown complete")

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at
