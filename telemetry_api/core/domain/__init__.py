"""Domain layer - Modelos y contratos."""

from .device import Device
from .reading import NormalizedReading, ReadingKind, ReadingMetadata

__all__ = ["Device", "NormalizedReading", "ReadingKind", "ReadingMetadata"]
