"""Canal acotado entre el hilo de red de paho y el pipeline de ingesta.

A diferencia de una cola con descarte, aquí nunca se pierden mensajes:
cuando el canal está lleno el productor (callback de paho) se bloquea
hasta que el consumidor libera espacio.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BrokerMessage:
    """Par (topic, payload) tal como llega del broker."""
    topic: str
    payload: bytes


@dataclass
class ChannelStats:
    enqueued: int = 0
    dequeued: int = 0
    blocked_puts: int = 0
    current_size: int = 0
    max_size: int = 0


class MessageChannel(Generic[T]):
    """Cola FIFO acotada y thread-safe.

    Uso:
        channel = MessageChannel[BrokerMessage](max_size=1000)

        # Productor (hilo de paho)
        channel.put(message)

        # Consumidor
        message = channel.get(timeout=0.5)
    """

    def __init__(self, max_size: int = 10000):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._queue: deque[T] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._closed = False
        self._stats = ChannelStats(max_size=max_size)

    def put(self, item: T, timeout: Optional[float] = None) -> bool:
        """Encola un item, bloqueando mientras el canal esté lleno.

        Returns:
            True si se encoló, False si el canal está cerrado o venció el timeout
        """
        with self._not_full:
            if len(self._queue) >= self._max_size and not self._closed:
                self._stats.blocked_puts += 1
                logger.debug("[CHANNEL] Full (size=%d), producer waiting", len(self._queue))
                if not self._not_full.wait_for(
                    lambda: self._closed or len(self._queue) < self._max_size,
                    timeout=timeout,
                ):
                    return False
            if self._closed:
                return False

            self._queue.append(item)
            self._stats.enqueued += 1
            self._stats.current_size = len(self._queue)
            self._not_empty.notify()
            return True

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Obtiene el siguiente item.

        Args:
            timeout: Segundos a esperar (None = bloquear indefinidamente)

        Returns:
            Item o None si timeout o canal cerrado y vacío
        """
        with self._not_empty:
            if not self._queue and not self._closed:
                self._not_empty.wait(timeout)

            if not self._queue:
                return None

            item = self._queue.popleft()
            self._stats.dequeued += 1
            self._stats.current_size = len(self._queue)
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Despierta a productores y consumidores; no acepta más items."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._queue)

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "enqueued": self._stats.enqueued,
                "dequeued": self._stats.dequeued,
                "blocked_puts": self._stats.blocked_puts,
                "current_size": len(self._queue),
                "max_size": self._max_size,
            }
