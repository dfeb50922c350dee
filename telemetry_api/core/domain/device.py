"""Modelo de dominio para dispositivos vistos en el broker."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .reading import NormalizedReading

DEFAULT_DEVICE_TYPE = "sensor"


@dataclass
class Device:
    """Estado de un dispositivo en el registro.

    Se crea con la primera lectura que trae ``deviceId`` y se actualiza
    en sitio con cada lectura posterior. Nunca se elimina.
    """
    id: str
    name: str
    type: str
    first_seen: int  # epoch ms
    last_seen: int  # epoch ms
    message_count: int = 0
    last_data: Optional[NormalizedReading] = None

    @classmethod
    def first_seen_from(cls, reading: NormalizedReading, now_ms: int) -> "Device":
        device_id = reading.device_id
        return cls(
            id=device_id,
            name=reading.device_name or f"device-{device_id}",
            type=reading.device_type or DEFAULT_DEVICE_TYPE,
            first_seen=now_ms,
            last_seen=now_ms,
        )

    def copy(self) -> "Device":
        # NormalizedReading es inmutable, basta con copia superficial
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "firstSeen": self.first_seen,
            "lastSeen": self.last_seen,
            "messageCount": self.message_count,
            "lastData": self.last_data.to_dict() if self.last_data is not None else None,
        }
