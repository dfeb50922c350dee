"""Normalización de mensajes MQTT.

Convierte el payload crudo en una ``NormalizedReading``:
- objeto JSON → STRUCTURED
- cualquier otra cosa → RAW con el texto original

Nunca lanza excepciones hacia el pipeline.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import orjson

from ..core.domain.reading import NormalizedReading, ReadingMetadata

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class MessageNormalizer:
    """Transforma (topic, payload) en lecturas normalizadas."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        server_clock: Optional[Callable[[], int]] = None,
    ):
        self._clock = clock or _utc_now
        self._server_clock = server_clock or _epoch_ms
        self._structured = 0
        self._raw = 0

    def normalize(self, topic: str, payload: bytes | str) -> NormalizedReading:
        metadata = ReadingMetadata(
            topic=topic,
            received_at=self._clock().isoformat(),
            server_time=self._server_clock(),
        )

        fields = self._decode(payload, topic)
        if fields is not None:
            self._structured += 1
            return NormalizedReading.structured(fields, metadata)

        self._raw += 1
        return NormalizedReading.raw(self._as_text(payload), metadata)

    def _decode(self, payload: bytes | str, topic: str) -> Optional[dict]:
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError:
            logger.debug("[NORMALIZER] Non-JSON payload, raw fallback (topic=%s)", topic)
            return None

        if not isinstance(data, dict):
            logger.debug(
                "[NORMALIZER] JSON %s is not an object, raw fallback (topic=%s)",
                type(data).__name__,
                topic,
            )
            return None
        return data

    @staticmethod
    def _as_text(payload: bytes | str) -> str:
        if isinstance(payload, str):
            return payload
        return payload.decode("utf-8", errors="replace")

    @property
    def stats(self) -> dict:
        return {"structured": self._structured, "raw": self._raw}
