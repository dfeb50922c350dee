"""Tests del fan-out WebSocket.

Cubre:
1. Mensaje init al unirse
2. Update idéntico a todos los suscriptores abiertos
3. Aislamiento: un suscriptor caído o lento no afecta al resto
"""

import asyncio

import pytest

from telemetry_api.mqtt.normalizer import MessageNormalizer
from telemetry_api.realtime.broadcaster import INIT_HISTORY_SIZE, Broadcaster
from telemetry_api.store.telemetry_store import TelemetryStore

from conftest import HUMIDITY_TOPIC, TEMPERATURE_TOPIC, FakeSubscriber


class StalledSubscriber(FakeSubscriber):
    """Nunca termina de enviar."""

    async def send_text(self, data: str) -> None:
        await asyncio.Event().wait()


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def normalizer() -> MessageNormalizer:
    return MessageNormalizer()


@pytest.fixture
def store() -> TelemetryStore:
    return TelemetryStore(max_history=50)


def _ingest(store, normalizer, topic, payload: bytes):
    reading = normalizer.normalize(topic, payload)
    store.ingest(reading)
    return reading


# =============================================================================
# INIT
# =============================================================================

class TestInit:

    @pytest.mark.asyncio
    async def test_init_without_data(self, store):
        broadcaster = Broadcaster(store)
        sub = FakeSubscriber()

        await broadcaster.join(sub)
        await broadcaster.flush()

        assert sub.sent == [{"type": "init", "data": None, "history": []}]
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_init_carries_latest_and_last_temperature_readings(self, store, normalizer):
        temps = [
            _ingest(store, normalizer, TEMPERATURE_TOPIC, f'{{"temperature": {i}}}'.encode())
            for i in range(15)
        ]
        humidity = _ingest(store, normalizer, HUMIDITY_TOPIC, b'{"humidity": 60}')
        broadcaster = Broadcaster(store)
        sub = FakeSubscriber()

        await broadcaster.join(sub)
        await broadcaster.flush()

        init = sub.of_type("init")[0]
        assert init["data"]["humidity"] == 60
        assert init["data"]["topic"] == humidity.topic
        assert len(init["history"]) == INIT_HISTORY_SIZE
        assert init["history"] == [r.to_dict() for r in temps[-INIT_HISTORY_SIZE:]]
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_join_twice_is_noop(self, store):
        broadcaster = Broadcaster(store)
        sub = FakeSubscriber()

        await broadcaster.join(sub)
        await broadcaster.join(sub)
        await broadcaster.flush()

        assert broadcaster.subscriber_count == 1
        assert len(sub.of_type("init")) == 1
        await broadcaster.close()


# =============================================================================
# UPDATE
# =============================================================================

class TestUpdate:

    @pytest.mark.asyncio
    async def test_every_open_subscriber_gets_identical_update(self, store, normalizer):
        broadcaster = Broadcaster(store)
        subs = [FakeSubscriber() for _ in range(3)]
        for sub in subs:
            await broadcaster.join(sub)

        reading = _ingest(store, normalizer, TEMPERATURE_TOPIC, b'{"deviceId": "d1", "temperature": 25}')
        assert broadcaster.publish(reading) == 3
        await broadcaster.flush()

        updates = [sub.of_type("update") for sub in subs]
        assert all(len(u) == 1 for u in updates)
        assert updates[0] == updates[1] == updates[2]
        assert updates[0][0]["data"] == reading.to_dict()
        assert isinstance(updates[0][0]["timestamp"], str)
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_closed_subscriber_does_not_block_others(self, store, normalizer):
        broadcaster = Broadcaster(store)
        subs = [FakeSubscriber() for _ in range(3)]
        for sub in subs:
            await broadcaster.join(sub)
        await broadcaster.flush()

        subs[1].open = False
        reading = _ingest(store, normalizer, TEMPERATURE_TOPIC, b'{"temperature": 30}')

        assert broadcaster.publish(reading) == 2
        await broadcaster.flush()

        assert len(subs[0].of_type("update")) == 1
        assert len(subs[1].of_type("update")) == 0
        assert len(subs[2].of_type("update")) == 1
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_updates_keep_publish_order(self, store, normalizer):
        broadcaster = Broadcaster(store)
        sub = FakeSubscriber()
        await broadcaster.join(sub)

        for i in range(5):
            broadcaster.publish(_ingest(store, normalizer, TEMPERATURE_TOPIC, f'{{"temperature": {i}}}'.encode()))
        await broadcaster.flush()

        assert [m["data"]["temperature"] for m in sub.of_type("update")] == [0, 1, 2, 3, 4]
        await broadcaster.close()


# =============================================================================
# AISLAMIENTO DE FALLOS
# =============================================================================

class TestEviction:

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_evicted(self, store, normalizer):
        broadcaster = Broadcaster(store)
        healthy = FakeSubscriber()
        broken = FakeSubscriber(fail=True)
        await broadcaster.join(healthy)
        await broadcaster.join(broken)
        await settle()

        assert broadcaster.subscriber_count == 1
        assert broken.closed

        reading = _ingest(store, normalizer, TEMPERATURE_TOPIC, b'{"temperature": 1}')
        assert broadcaster.publish(reading) == 1
        await broadcaster.flush()

        assert len(healthy.of_type("update")) == 1
        assert broadcaster.stats["evicted"] == 1
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_stalled_subscriber_is_evicted_when_queue_fills(self, store, normalizer):
        broadcaster = Broadcaster(store, queue_size=2)
        healthy = FakeSubscriber()
        stalled = StalledSubscriber()
        await broadcaster.join(healthy)
        await broadcaster.join(stalled)
        await settle()

        for i in range(4):
            broadcaster.publish(_ingest(store, normalizer, TEMPERATURE_TOPIC, f'{{"temperature": {i}}}'.encode()))
            await settle()

        await broadcaster.flush()

        assert broadcaster.subscriber_count == 1
        assert stalled.closed
        assert [m["data"]["temperature"] for m in healthy.of_type("update")] == [0, 1, 2, 3]
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_leave_removes_subscriber(self, store, normalizer):
        broadcaster = Broadcaster(store)
        sub = FakeSubscriber()
        await broadcaster.join(sub)
        await broadcaster.flush()

        await broadcaster.leave(sub)
        reading = _ingest(store, normalizer, TEMPERATURE_TOPIC, b'{"temperature": 1}')

        assert broadcaster.publish(reading) == 0
        assert broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_close_closes_all_subscribers(self, store):
        broadcaster = Broadcaster(store)
        subs = [FakeSubscriber() for _ in range(2)]
        for sub in subs:
            await broadcaster.join(sub)

        await broadcaster.close()

        assert broadcaster.subscriber_count == 0
        assert all(sub.closed for sub in subs)
