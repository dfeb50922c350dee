"""Push en tiempo real hacia suscriptores."""

from .broadcaster import INIT_HISTORY_SIZE, Broadcaster, Subscriber
from .websocket import WebSocketSubscriber

__all__ = ["Broadcaster", "Subscriber", "WebSocketSubscriber", "INIT_HISTORY_SIZE"]
