"""Endpoints de consulta de telemetría."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import UnknownCategoryError
from ..core.hub import TelemetryHub
from ..schemas import (
    ConnectionsStatus,
    DevicesResult,
    HistoryResult,
    LatestResult,
    StatisticsStatus,
    StatusResult,
)
from ..store.telemetry_store import DEFAULT_CATEGORY
from .dependencies import get_hub

router = APIRouter(prefix="/api", tags=["telemetry"])


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/data/latest", response_model=LatestResult)
def get_latest(hub: TelemetryHub = Depends(get_hub)):
    latest = hub.queries.get_latest()
    return LatestResult(
        timestamp=_utc_now(),
        data=latest["snapshot"],
        devices=latest["devices"],
    )


@router.get("/data/history", response_model=HistoryResult)
def get_history(
    type: str = Query(DEFAULT_CATEGORY),
    limit: int = Query(50),
    hub: TelemetryHub = Depends(get_hub),
):
    """Historial de una categoría; ``limit`` se acota a [0, tamaño actual]."""
    try:
        history = hub.queries.get_history(type, limit)
    except UnknownCategoryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return HistoryResult(type=type, count=len(history), data=history)


@router.get("/devices", response_model=DevicesResult)
def get_devices(hub: TelemetryHub = Depends(get_hub)):
    devices = hub.queries.get_devices()
    return DevicesResult(count=len(devices), devices=devices)


@router.get("/status", response_model=StatusResult)
def get_status(hub: TelemetryHub = Depends(get_hub)):
    status = hub.queries.get_status()
    return StatusResult(
        timestamp=_utc_now(),
        uptime=hub.uptime_seconds,
        connections=ConnectionsStatus(
            mqtt="connected" if status["brokerConnected"] else "disconnected",
            websocket=status["subscriberCount"],
        ),
        statistics=StatisticsStatus(
            totalMessages=status["totalMessages"],
            connectedDevices=status["connectedDevices"],
            latestUpdate=status["latestTimestamp"],
        ),
    )
