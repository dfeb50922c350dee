"""Modelo de dominio para lecturas normalizadas."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ReadingKind(str, Enum):
    """Variante de la lectura normalizada."""
    STRUCTURED = "structured"
    RAW = "raw"


@dataclass(frozen=True)
class ReadingMetadata:
    topic: str
    received_at: str  # ISO-8601, reloj de pared
    server_time: int  # epoch ms

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "receivedAt": self.received_at,
            "serverTime": self.server_time,
        }


@dataclass(frozen=True)
class NormalizedReading:
    """Lectura normalizada - contrato único del pipeline.

    MQTT → Normalizer → Store/Registry → Broadcaster

    Es una variante etiquetada:
    - ``STRUCTURED``: el payload era un objeto JSON, ``fields`` tiene su contenido
    - ``RAW``: el payload no se pudo decodificar, ``text`` tiene el texto original

    Los campos semánticos (deviceId, temperature, ...) se exponen como
    propiedades opcionales explícitas y solo existen en lecturas STRUCTURED.
    """

    kind: ReadingKind
    metadata: ReadingMetadata
    fields: Dict[str, Any] = field(default_factory=dict)
    text: Optional[str] = None

    @classmethod
    def structured(cls, fields: Dict[str, Any], metadata: ReadingMetadata) -> "NormalizedReading":
        return cls(kind=ReadingKind.STRUCTURED, metadata=metadata, fields=dict(fields))

    @classmethod
    def raw(cls, text: str, metadata: ReadingMetadata) -> "NormalizedReading":
        return cls(kind=ReadingKind.RAW, metadata=metadata, text=text)

    @property
    def is_structured(self) -> bool:
        return self.kind is ReadingKind.STRUCTURED

    @property
    def topic(self) -> str:
        return self.metadata.topic

    def _field(self, name: str) -> Any:
        if not self.is_structured:
            return None
        return self.fields.get(name)

    @property
    def device_id(self) -> Optional[str]:
        value = self._field("deviceId")
        # 0, "" y null no identifican un dispositivo
        if not value or isinstance(value, (bool, dict, list)):
            return None
        return str(value)

    @property
    def device_name(self) -> Optional[str]:
        value = self._field("deviceName")
        return str(value) if value else None

    @property
    def device_type(self) -> Optional[str]:
        value = self._field("deviceType")
        return str(value) if value else None

    @property
    def temperature(self) -> Any:
        return self._field("temperature")

    @property
    def humidity(self) -> Any:
        return self._field("humidity")

    @property
    def ts(self) -> Any:
        return self._field("ts")

    @property
    def timestamp(self) -> Any:
        """Timestamp reportado por la lectura.

        Para lecturas RAW es el serverTime del hub.
        """
        if self.is_structured:
            return self.fields.get("timestamp")
        return self.metadata.server_time

    def to_dict(self) -> dict:
        """Formato de wire (API / WebSocket)."""
        if self.is_structured:
            data = dict(self.fields)
        else:
            data = {"raw": self.text, "timestamp": self.metadata.server_time}
        data["_metadata"] = self.metadata.to_dict()
        return data
