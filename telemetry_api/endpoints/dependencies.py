from __future__ import annotations

from fastapi import Request, WebSocket

from ..core.hub import TelemetryHub


def get_hub(request: Request) -> TelemetryHub:
    return request.app.state.hub


def get_ws_hub(websocket: WebSocket) -> TelemetryHub:
    return websocket.app.state.hub
