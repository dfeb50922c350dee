"""WebSocket de push en tiempo real.

Protocolo (solo servidor → cliente):
1. Server → {type: "init", data, history}
2. Server → {type: "update", timestamp, data} por cada lectura

Los mensajes del cliente se ignoran; solo sirven para detectar el cierre.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..realtime.websocket import WebSocketSubscriber
from .dependencies import get_ws_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stream"])


@router.websocket("/ws")
async def telemetry_stream(websocket: WebSocket):
    hub = get_ws_hub(websocket)
    await websocket.accept()

    subscriber = WebSocketSubscriber(websocket)
    await hub.broadcaster.join(subscriber)

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("[WS] Client disconnected")
    except Exception as e:
        logger.warning("[WS] Connection error: %s", e)
    finally:
        await hub.broadcaster.leave(subscriber)
