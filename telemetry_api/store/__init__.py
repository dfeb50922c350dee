"""Estado en memoria del hub (sin persistencia)."""

from .device_registry import DeviceRegistry
from .history_buffer import HistoryBuffer
from .telemetry_store import (
    DEFAULT_CATEGORY,
    HUMIDITY,
    TEMPERATURE,
    LatestSnapshot,
    TelemetryStore,
    classify_topic,
)

__all__ = [
    "DeviceRegistry",
    "HistoryBuffer",
    "LatestSnapshot",
    "TelemetryStore",
    "classify_topic",
    "DEFAULT_CATEGORY",
    "TEMPERATURE",
    "HUMIDITY",
]
