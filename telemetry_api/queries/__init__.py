"""Queries de solo lectura.

Consultas puras sobre el estado en memoria para los endpoints HTTP.
"""

from .telemetry import TelemetryQueries

__all__ = ["TelemetryQueries"]
