from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from common.config import get_settings
from common.logging_setup import configure_logging
from .core.hub import TelemetryHub
from .endpoints import control_router, health_router, stream_router, telemetry_router

logger = logging.getLogger(__name__)


def create_app(hub: Optional[TelemetryHub] = None) -> FastAPI:
    """Construye la app; ``hub`` permite inyectar uno ya configurado (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if hub is None:
            settings = get_settings()
            configure_logging(settings.log_level)
            app.state.hub = TelemetryHub(settings)
        else:
            app.state.hub = hub

        await app.state.hub.start()
        try:
            yield
        finally:
            await app.state.hub.shutdown()

    app = FastAPI(title="IoT Telemetry Hub", version="0.1.0", lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(telemetry_router)
    app.include_router(control_router)
    app.include_router(stream_router)
    return app


app = create_app()
