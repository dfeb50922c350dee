"""Registro en memoria de dispositivos vistos."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from ..core.domain.device import Device
from ..core.domain.reading import NormalizedReading

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Estado por dispositivo: lastSeen, messageCount, lastData.

    - ``record`` actualiza los tres campos bajo un mismo lock, por lo que
      ningún lector observa un dispositivo a medio actualizar.
    - ``list`` devuelve copias en orden de primera aparición (los dict de
      Python conservan el orden de inserción).
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._devices: Dict[str, Device] = {}
        self._lock = threading.Lock()
        self._clock = clock or (lambda: int(time.time() * 1000))

    def record(self, reading: NormalizedReading) -> Optional[Device]:
        device_id = reading.device_id
        if device_id is None:
            return None

        now_ms = self._clock()
        with self._lock:
            device = self._devices.get(device_id)
            created = device is None
            if created:
                device = Device.first_seen_from(reading, now_ms)
                self._devices[device_id] = device

            # lastSeen nunca retrocede aunque el reloj lo haga
            device.last_seen = max(device.last_seen, now_ms)
            device.message_count += 1
            device.last_data = reading
            result = device.copy()

        if created:
            logger.info("[REGISTRY] New device: id=%s name=%s type=%s", result.id, result.name, result.type)
        return result

    def get(self, device_id: str) -> Optional[Device]:
        with self._lock:
            device = self._devices.get(str(device_id))
            return device.copy() if device is not None else None

    def list(self) -> List[Device]:
        with self._lock:
            return [device.copy() for device in self._devices.values()]

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._devices)
