"""Pipeline de ingesta.

Flujo por mensaje (uno a la vez, en orden de llegada):
  BrokerMessage
  → MessageNormalizer
  → TelemetryStore + DeviceRegistry
  → Broadcaster

Es el único escritor del store y del registro.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from ..mqtt.channel import BrokerMessage, MessageChannel
from ..mqtt.normalizer import MessageNormalizer
from ..realtime.broadcaster import Broadcaster
from ..store.device_registry import DeviceRegistry
from ..store.telemetry_store import TelemetryStore
from .domain.reading import NormalizedReading
from .monitoring.stats import Stats

logger = logging.getLogger(__name__)

STATS_LOG_EVERY = 100


class TelemetryPipeline:
    """Procesa mensajes del broker a través del pipeline."""

    def __init__(
        self,
        normalizer: MessageNormalizer,
        store: TelemetryStore,
        registry: DeviceRegistry,
        broadcaster: Broadcaster,
    ):
        self._normalizer = normalizer
        self._store = store
        self._registry = registry
        self._broadcaster = broadcaster
        self._stats = Stats()

    def handle(self, message: BrokerMessage) -> Optional[NormalizedReading]:
        """Procesa un mensaje completo antes de aceptar el siguiente."""
        self._stats.received += 1
        self._stats.last_message_at = time.time()

        try:
            reading = self._normalizer.normalize(message.topic, message.payload)
            self._store.ingest(reading)
            device = self._registry.record(reading)
            self._broadcaster.publish(reading)
        except Exception as e:
            logger.exception("[PIPELINE] Processing error (topic=%s): %s", message.topic, e)
            self._stats.failed += 1
            return None

        self._stats.processed += 1
        logger.debug(
            "[PIPELINE] Stored: device=%s temperature=%s topic=%s",
            device.id if device is not None else "unknown",
            reading.temperature if reading.temperature is not None else "N/A",
            message.topic,
        )
        if self._stats.processed % STATS_LOG_EVERY == 0:
            logger.info("[PIPELINE] %s", self._stats)
        return reading

    async def run(self, channel: MessageChannel[BrokerMessage], poll_seconds: float = 0.5) -> None:
        """Consume el canal hasta que se cierre y quede vacío."""
        logger.info("[PIPELINE] Ingestion started")
        while True:
            message = await asyncio.to_thread(channel.get, poll_seconds)
            if message is None:
                if channel.closed:
                    break
                continue
            self.handle(message)
        logger.info("[PIPELINE] Ingestion stopped. %s", self._stats)

    @property
    def stats(self) -> Stats:
        return self._stats
