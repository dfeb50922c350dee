"""Endpoint de comandos de control hacia dispositivos."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.errors import ControlValidationError
from ..core.hub import TelemetryHub
from ..schemas import ControlCommandIn, ControlResult, ErrorResult
from .dependencies import get_hub

router = APIRouter(prefix="/api", tags=["control"])


@router.post(
    "/control",
    response_model=ControlResult,
    responses={400: {"model": ErrorResult}},
)
def submit_control(payload: ControlCommandIn, hub: TelemetryHub = Depends(get_hub)):
    """Publica un comando en ``iot/device/{deviceId}/control``."""
    try:
        envelope = hub.queries.submit_control(payload.deviceId, payload.command, payload.params)
    except ControlValidationError as e:
        return JSONResponse(status_code=400, content=ErrorResult(error=str(e)).model_dump())

    return ControlResult(message="Control command sent", command=envelope)
