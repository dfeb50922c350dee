"""Publicación de comandos de control hacia los dispositivos.

Formato publicado en ``iot/device/{deviceId}/control``:
{
    "type": "control",
    "target": "<deviceId>",
    "command": "<command>",
    "params": {...},
    "timestamp": <epoch-ms>,
    "source": "web-server"
}
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Literal, Optional, Protocol

import orjson
from pydantic import BaseModel, Field

from ..core.errors import ControlValidationError
from .client import PublishResult

logger = logging.getLogger(__name__)

CONTROL_TOPIC_TEMPLATE = "iot/device/{device_id}/control"
CONTROL_SOURCE = "web-server"
CONTROL_QOS = 1


class ControlEnvelope(BaseModel):
    type: Literal["control"] = "control"
    target: str
    command: str
    params: Dict[str, Any] = Field(default_factory=dict)
    timestamp: int
    source: str = CONTROL_SOURCE


class ControlPublishPort(Protocol):
    def publish(self, topic: str, payload: bytes | str, qos: int = 1) -> PublishResult:
        ...


def control_topic(device_id: str) -> str:
    return CONTROL_TOPIC_TEMPLATE.format(device_id=device_id)


def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    # 0, False y null no identifican un destino
    return not value or isinstance(value, (bool, dict, list))


class ControlPublisher:
    """Valida, codifica y publica comandos de control."""

    def __init__(
        self,
        publisher: ControlPublishPort,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._publisher = publisher
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._submitted = 0
        self._rejected = 0

    def submit(
        self,
        device_id: Any,
        command: Any,
        params: Optional[Dict[str, Any]] = None,
    ) -> ControlEnvelope:
        """Publica un comando (fire-and-forget).

        Raises:
            ControlValidationError: si falta deviceId o command
        """
        if _is_blank(device_id) or _is_blank(command):
            self._rejected += 1
            logger.warning(
                "[CONTROL] Rejected command: deviceId=%r command=%r",
                device_id,
                command,
            )
            raise ControlValidationError("deviceId and command are required")

        envelope = ControlEnvelope(
            target=str(device_id),
            command=str(command),
            params=dict(params or {}),
            timestamp=self._clock(),
        )
        topic = control_topic(envelope.target)

        result = self._publisher.publish(topic, orjson.dumps(envelope.model_dump()), qos=CONTROL_QOS)
        self._submitted += 1
        if result.ok:
            logger.info("[CONTROL] Sent command: %s -> %s", envelope.target, envelope.command)
        else:
            logger.warning(
                "[CONTROL] Command not queued: %s -> %s (rc=%s)",
                envelope.target,
                envelope.command,
                result.rc,
            )
        return envelope

    @property
    def stats(self) -> dict:
        return {"submitted": self._submitted, "rejected": self._rejected}
