"""Configuración de logging del proceso."""

from __future__ import annotations

import logging

_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    """Configura el root logger una sola vez por proceso."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    # paho es muy verboso en DEBUG
    logging.getLogger("paho").setLevel(logging.WARNING)
    _configured = True
