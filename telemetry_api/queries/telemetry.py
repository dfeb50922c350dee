"""Consultas de solo lectura sobre el estado del hub.

Todas devuelven estructuras nuevas (dict/list), nunca referencias
mutables al estado interno.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..mqtt.control import ControlPublisher
from ..realtime.broadcaster import Broadcaster
from ..store.device_registry import DeviceRegistry
from ..store.telemetry_store import TelemetryStore


class ConnectionState(Protocol):
    @property
    def is_connected(self) -> bool:
        ...


class TelemetryQueries:
    def __init__(
        self,
        store: TelemetryStore,
        registry: DeviceRegistry,
        broadcaster: Broadcaster,
        broker: ConnectionState,
        control: ControlPublisher,
    ):
        self._store = store
        self._registry = registry
        self._broadcaster = broadcaster
        self._broker = broker
        self._control = control

    def get_latest(self) -> Dict[str, Any]:
        latest = self._store.latest()
        return {
            "snapshot": latest.to_dict() if latest is not None else None,
            "devices": self.get_devices(),
        }

    def get_history(self, category: str, limit: int) -> List[dict]:
        """Raises UnknownCategoryError para categorías desconocidas."""
        return [reading.to_dict() for reading in self._store.history(category, limit)]

    def get_devices(self) -> List[dict]:
        return [device.to_dict() for device in self._registry.list()]

    def get_status(self) -> Dict[str, Any]:
        latest = self._store.latest()
        return {
            "brokerConnected": bool(self._broker.is_connected),
            "subscriberCount": self._broadcaster.subscriber_count,
            # Lecturas retenidas en historial (acotado por MAX_HISTORY)
            "totalMessages": self._store.total_history(),
            "connectedDevices": self._registry.count,
            "latestTimestamp": latest.reading.timestamp if latest is not None else None,
        }

    def submit_control(
        self,
        device_id: Any,
        command: Any,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Raises ControlValidationError si falta deviceId o command."""
        return self._control.submit(device_id, command, params).model_dump()
