"""Statistics for the MQTT broker client."""

from __future__ import annotations


class ReceiverStats:
    """Estadísticas del cliente MQTT."""

    def __init__(self):
        self.received = 0
        self.failed = 0
        self.published = 0
        self.reconnects = 0
        self.last_message_at: float = 0

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} failed={self.failed} "
            f"published={self.published} reconnects={self.reconnects}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        return {
            "messages_received": self.received,
            "messages_failed": self.failed,
            "messages_published": self.published,
            "reconnect_count": self.reconnects,
            "last_message_at": self.last_message_at,
        }
