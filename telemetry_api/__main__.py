"""Punto de entrada: ``python -m telemetry_api``."""

from __future__ import annotations

import uvicorn

from common.config import get_settings
from common.logging_setup import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "telemetry_api.main:app",
        host="0.0.0.0",
        port=settings.http_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
