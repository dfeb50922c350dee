"""Fan-out en tiempo real hacia suscriptores (WebSocket).

Mensajes enviados:
- Al unirse: {"type": "init", "data": <latest>, "history": <últimas 10>}
- Por lectura: {"type": "update", "timestamp": <iso8601>, "data": <reading>}

Cada suscriptor tiene su propia cola acotada y su propia tarea de envío:
un suscriptor lento o caído nunca retrasa a los demás ni al pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol, Set

import orjson

from ..core.domain.reading import NormalizedReading
from ..core.errors import UnknownCategoryError
from ..store.telemetry_store import DEFAULT_CATEGORY, TelemetryStore

logger = logging.getLogger(__name__)

INIT_HISTORY_SIZE = 10


class Subscriber(Protocol):
    """Conexión push mínima que el broadcaster necesita."""

    @property
    def is_open(self) -> bool:
        ...

    async def send_text(self, data: str) -> None:
        ...

    async def close(self) -> None:
        ...


@dataclass
class _Connection:
    subscriber: Subscriber
    queue: "asyncio.Queue[str]"
    task: Optional["asyncio.Task[None]"] = None


def _encode(message: dict) -> str:
    return orjson.dumps(message).decode("utf-8")


class Broadcaster:
    """Mantiene el conjunto de suscriptores vivos y reparte actualizaciones."""

    def __init__(
        self,
        store: TelemetryStore,
        queue_size: int = 100,
        default_category: str = DEFAULT_CATEGORY,
    ):
        self._store = store
        self._queue_size = queue_size
        self._default_category = default_category
        self._connections: Dict[Subscriber, _Connection] = {}
        self._closing: Set["asyncio.Task[None]"] = set()
        self._published = 0
        self._evicted = 0

    def build_init(self) -> dict:
        latest = self._store.latest()
        try:
            history = self._store.history(self._default_category, INIT_HISTORY_SIZE)
        except UnknownCategoryError:
            history = []
        return {
            "type": "init",
            "data": latest.to_dict() if latest is not None else None,
            "history": [reading.to_dict() for reading in history],
        }

    @staticmethod
    def build_update(reading: NormalizedReading) -> dict:
        return {
            "type": "update",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": reading.to_dict(),
        }

    async def join(self, subscriber: Subscriber) -> None:
        """Registra un suscriptor y le envía el estado inicial."""
        if subscriber in self._connections:
            return

        conn = _Connection(subscriber=subscriber, queue=asyncio.Queue(maxsize=self._queue_size))
        conn.queue.put_nowait(_encode(self.build_init()))
        conn.task = asyncio.create_task(self._sender(conn))
        self._connections[subscriber] = conn
        logger.info("[WS] Subscriber joined (total=%d)", len(self._connections))

    async def leave(self, subscriber: Subscriber) -> None:
        """Elimina un suscriptor (desconexión normal)."""
        if self._discard(subscriber):
            logger.info("[WS] Subscriber left (total=%d)", len(self._connections))

    def publish(self, reading: NormalizedReading) -> int:
        """Encola la actualización para cada suscriptor abierto.

        No bloquea y nunca lanza hacia el pipeline.

        Returns:
            Número de suscriptores a los que se encoló el mensaje
        """
        message = _encode(self.build_update(reading))
        self._published += 1
        delivered = 0

        for subscriber, conn in list(self._connections.items()):
            if not subscriber.is_open:
                continue
            try:
                conn.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("[WS] Subscriber stalled (queue=%d), evicting", self._queue_size)
                self._evict(subscriber)

        return delivered

    async def _sender(self, conn: _Connection) -> None:
        while True:
            message = await conn.queue.get()
            try:
                await conn.subscriber.send_text(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("[WS] Send failed, evicting subscriber: %s", e)
                self._evict(conn.subscriber)
                return
            finally:
                conn.queue.task_done()

    def _discard(self, subscriber: Subscriber) -> bool:
        conn = self._connections.pop(subscriber, None)
        if conn is None:
            return False

        if conn.task is not None and conn.task is not asyncio.current_task():
            conn.task.cancel()
        # Libera a quien esté esperando en flush()
        while True:
            try:
                conn.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            conn.queue.task_done()
        return True

    def _evict(self, subscriber: Subscriber) -> None:
        if not self._discard(subscriber):
            return
        self._evicted += 1
        task = asyncio.ensure_future(self._close_quietly(subscriber))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    @staticmethod
    async def _close_quietly(subscriber: Subscriber) -> None:
        try:
            await subscriber.close()
        except Exception as e:
            logger.debug("[WS] Error closing subscriber: %s", e)

    async def flush(self) -> None:
        """Espera a que se envíe todo lo encolado."""
        await asyncio.gather(*(conn.queue.join() for conn in list(self._connections.values())))

    async def close(self) -> None:
        """Cierra todas las conexiones (shutdown)."""
        subscribers = list(self._connections)
        for subscriber in subscribers:
            self._discard(subscriber)
        await asyncio.gather(*(self._close_quietly(s) for s in subscribers))
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)
        logger.info("[WS] Closed %d subscriber(s)", len(subscribers))

    @property
    def subscriber_count(self) -> int:
        return len(self._connections)

    @property
    def stats(self) -> dict:
        return {
            "subscribers": len(self._connections),
            "published": self._published,
            "evicted": self._evicted,
        }
