"""Fixtures compartidas."""

from __future__ import annotations

import itertools
import json
from types import SimpleNamespace
from typing import List
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from common.config import Settings

TEMPERATURE_TOPIC = "iot/sensor/temperature"
HUMIDITY_TOPIC = "iot/sensor/humidity"


class FakeSubscriber:
    """Suscriptor en memoria que decodifica lo recibido."""

    def __init__(self, fail: bool = False):
        self.sent: List[dict] = []
        self.open = True
        self.closed = False
        self.fail = fail

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(json.loads(data))

    async def close(self) -> None:
        self.open = False
        self.closed = True

    def of_type(self, message_type: str) -> List[dict]:
        return [m for m in self.sent if m["type"] == message_type]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mqtt_broker_host="localhost",
        mqtt_broker_port=1883,
        mqtt_username=None,
        mqtt_password=None,
        mqtt_client_id="web-server",
        temperature_topic=TEMPERATURE_TOPIC,
        humidity_topic=HUMIDITY_TOPIC,
        extra_topics=(),
        mqtt_reconnect_seconds=2.0,
        mqtt_channel_max_size=100,
        max_history=5,
        http_port=3000,
        ws_queue_size=50,
        log_level="INFO",
    )


@pytest.fixture
def fake_paho():
    """Mock de paho.mqtt.Client.

    ``client.subscriptions`` registra (topic, mid) de cada subscribe.
    """
    client = MagicMock()
    mids = itertools.count(1)
    client.subscriptions = []

    def _subscribe(topic, qos=0):
        mid = next(mids)
        client.subscriptions.append((topic, mid))
        return mqtt.MQTT_ERR_SUCCESS, mid

    client.subscribe.side_effect = _subscribe
    client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS, mid=42)
    return client


def granted() -> SimpleNamespace:
    return SimpleNamespace(is_failure=False)


def rejected() -> SimpleNamespace:
    return SimpleNamespace(is_failure=True)
