"""Tests del registro de dispositivos."""

import itertools

import pytest

from telemetry_api.mqtt.normalizer import MessageNormalizer
from telemetry_api.store.device_registry import DeviceRegistry

from conftest import TEMPERATURE_TOPIC


@pytest.fixture
def normalizer() -> MessageNormalizer:
    return MessageNormalizer()


def _read(normalizer, payload: str):
    return normalizer.normalize(TEMPERATURE_TOPIC, payload.encode())


class TestDeviceRegistry:

    def test_counts_every_reading(self, normalizer):
        """N lecturas del mismo deviceId → messageCount = N."""
        registry = DeviceRegistry()
        readings = [_read(normalizer, f'{{"deviceId": "d1", "temperature": {i}}}') for i in range(7)]

        for r in readings:
            registry.record(r)

        device = registry.get("d1")
        assert device.message_count == 7
        assert device.last_data is readings[-1]
        assert registry.count == 1

    def test_last_seen_never_decreases(self, normalizer):
        clock_values = iter([1000, 2000, 1500, 3000])
        registry = DeviceRegistry(clock=lambda: next(clock_values))

        seen = [registry.record(_read(normalizer, '{"deviceId": "d1"}')).last_seen for _ in range(4)]

        assert seen == [1000, 2000, 2000, 3000]
        assert registry.get("d1").first_seen == 1000

    def test_no_duplicates_and_first_seen_order(self, normalizer):
        registry = DeviceRegistry()
        for device_id in ["b", "a", "b", "c", "a"]:
            registry.record(_read(normalizer, f'{{"deviceId": "{device_id}"}}'))

        assert [d.id for d in registry.list()] == ["b", "a", "c"]
        assert [d.message_count for d in registry.list()] == [2, 2, 1]

    def test_reading_without_device_id_is_ignored(self, normalizer):
        registry = DeviceRegistry()

        assert registry.record(_read(normalizer, '{"temperature": 20}')) is None
        assert registry.record(_read(normalizer, "plain text")) is None
        assert registry.count == 0

    def test_defaults_for_name_and_type(self, normalizer):
        registry = DeviceRegistry()

        device = registry.record(_read(normalizer, '{"deviceId": "d9"}'))

        assert device.name == "device-d9"
        assert device.type == "sensor"

    def test_name_and_type_from_first_reading(self, normalizer):
        registry = DeviceRegistry()

        registry.record(_read(normalizer, '{"deviceId": "d1", "deviceName": "Sala", "deviceType": "dht22"}'))
        device = registry.record(_read(normalizer, '{"deviceId": "d1", "deviceName": "Otro"}'))

        assert device.name == "Sala"
        assert device.type == "dht22"

    def test_list_returns_copies(self, normalizer):
        registry = DeviceRegistry()
        registry.record(_read(normalizer, '{"deviceId": "d1"}'))

        snapshot = registry.list()
        snapshot[0].message_count = 999

        assert registry.get("d1").message_count == 1

    def test_wire_format(self, normalizer):
        ticks = itertools.count(5000, 1000)
        registry = DeviceRegistry(clock=lambda: next(ticks))
        reading = _read(normalizer, '{"deviceId": "d1", "temperature": 21}')

        registry.record(reading)
        data = registry.get("d1").to_dict()

        assert data == {
            "id": "d1",
            "name": "device-d1",
            "type": "sensor",
            "firstSeen": 5000,
            "lastSeen": 5000,
            "messageCount": 1,
            "lastData": reading.to_dict(),
        }
