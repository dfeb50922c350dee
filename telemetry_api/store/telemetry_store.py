"""Almacén en memoria de telemetría.

Mantiene:
- La última lectura recibida (cualquier topic)
- Un historial acotado por categoría (temperature, humidity)

Un único escritor (el pipeline de ingesta); las lecturas concurrentes
reciben copias tomadas bajo el mismo lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..core.domain.reading import NormalizedReading
from ..core.errors import UnknownCategoryError
from .history_buffer import HistoryBuffer

logger = logging.getLogger(__name__)

TEMPERATURE = "temperature"
HUMIDITY = "humidity"
DEFAULT_CATEGORIES: Tuple[str, ...] = (TEMPERATURE, HUMIDITY)
DEFAULT_CATEGORY = TEMPERATURE


@dataclass(frozen=True)
class LatestSnapshot:
    """Última lectura ingerida, con la hora local de recepción."""
    reading: NormalizedReading
    display_time: str

    @property
    def topic(self) -> str:
        return self.reading.topic

    def to_dict(self) -> dict:
        data = self.reading.to_dict()
        data["topic"] = self.reading.topic
        data["displayTime"] = self.display_time
        return data


def classify_topic(topic: str, categories: Iterable[str] = DEFAULT_CATEGORIES) -> Optional[str]:
    """Clasifica un topic por subcadena.

    Devuelve la primera categoría contenida en el topic, o None.
    Los topics sin categoría solo actualizan la última lectura.
    """
    for category in categories:
        if category in topic:
            return category
    return None


class TelemetryStore:
    """Última lectura + historiales acotados por categoría."""

    def __init__(
        self,
        max_history: int = 100,
        categories: Iterable[str] = DEFAULT_CATEGORIES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._categories: Tuple[str, ...] = tuple(categories)
        self._buffers: Dict[str, HistoryBuffer[NormalizedReading]] = {
            category: HistoryBuffer(max_history) for category in self._categories
        }
        self._latest: Optional[LatestSnapshot] = None
        self._lock = threading.Lock()
        self._clock = clock or datetime.now
        self._ingested = 0
        self._unclassified = 0

    def ingest(self, reading: NormalizedReading) -> Optional[str]:
        """Almacena una lectura.

        Returns:
            Categoría en la que se guardó el historial, o None
        """
        category = classify_topic(reading.topic, self._categories)
        snapshot = LatestSnapshot(
            reading=reading,
            display_time=self._clock().strftime("%H:%M:%S"),
        )

        with self._lock:
            self._latest = snapshot
            self._ingested += 1
            if category is not None:
                self._buffers[category].append(reading)
            else:
                self._unclassified += 1

        if category is None:
            logger.debug("[STORE] Topic %s has no history category, latest only", reading.topic)
        return category

    def latest(self) -> Optional[LatestSnapshot]:
        with self._lock:
            return self._latest

    def history(self, category: str, limit: int) -> List[NormalizedReading]:
        """Últimas ``limit`` lecturas de la categoría, en orden de inserción.

        Raises:
            UnknownCategoryError: si la categoría no existe
        """
        buffer = self._buffers.get(category)
        if buffer is None:
            raise UnknownCategoryError(category)
        with self._lock:
            return buffer.tail(limit)

    def total_history(self) -> int:
        with self._lock:
            return sum(len(b) for b in self._buffers.values())

    @property
    def categories(self) -> Tuple[str, ...]:
        return self._categories

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "ingested": self._ingested,
                "unclassified": self._unclassified,
                "history": {name: len(b) for name, b in self._buffers.items()},
                "evicted": {name: b.evicted for name, b in self._buffers.items()},
            }
