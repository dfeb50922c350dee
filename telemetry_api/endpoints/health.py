"""Health and readiness endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from ..core.hub import TelemetryHub
from .dependencies import get_hub

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe: ok mientras el proceso esté vivo."""
    return {"status": "ok"}


@router.get("/ready")
def ready(hub: TelemetryHub = Depends(get_hub)):
    """Readiness probe: requiere conexión con el broker."""
    if not hub.broker.is_connected:
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/metrics")
def metrics(hub: TelemetryHub = Depends(get_hub)):
    """Aggregated in-process counters."""
    return {
        "broker": hub.broker.stats,
        "channel": hub.channel.get_stats(),
        "pipeline": hub.pipeline.stats.to_dict(),
        "normalizer": hub.normalizer.stats,
        "store": hub.store.stats,
        "devices": hub.registry.count,
        "broadcaster": hub.broadcaster.stats,
        "control": hub.control.stats,
    }
