"""Errores de dominio del hub."""

from __future__ import annotations


class TelemetryError(Exception):
    """Base de errores recuperables del hub."""


class ControlValidationError(TelemetryError, ValueError):
    """Comando de control sin deviceId o command."""


class UnknownCategoryError(TelemetryError, ValueError):
    """Categoría de historial no reconocida."""

    def __init__(self, category: str):
        super().__init__(f"Unknown history category: {category!r}")
        self.category = category
