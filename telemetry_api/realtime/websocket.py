"""Adaptador de WebSocket (FastAPI/Starlette) al protocolo Subscriber."""

from __future__ import annotations

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class WebSocketSubscriber:
    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self._websocket.send_text(data)

    async def close(self) -> None:
        if self.is_open:
            await self._websocket.close()
