"""Tests del canal acotado broker → pipeline."""

import threading
import time

import pytest

from telemetry_api.mqtt.channel import MessageChannel


class TestMessageChannel:

    def test_fifo_order(self):
        channel = MessageChannel(max_size=5)
        for i in range(5):
            assert channel.put(i)

        assert [channel.get(timeout=0) for _ in range(5)] == [0, 1, 2, 3, 4]
        assert channel.get(timeout=0) is None

    def test_full_channel_blocks_instead_of_dropping(self):
        channel = MessageChannel(max_size=1)
        channel.put("a")

        assert channel.put("b", timeout=0.05) is False
        assert channel.size == 1
        assert channel.get_stats()["blocked_puts"] == 1

    def test_blocked_producer_resumes_when_consumer_drains(self):
        channel = MessageChannel(max_size=1)
        channel.put("a")
        done = threading.Event()

        def producer():
            channel.put("b")
            done.set()

        thread = threading.Thread(target=producer)
        thread.start()
        time.sleep(0.05)
        assert not done.is_set()

        assert channel.get(timeout=1) == "a"
        thread.join(timeout=1)

        assert done.is_set()
        assert channel.get(timeout=1) == "b"

    def test_close_wakes_consumer_and_rejects_puts(self):
        channel = MessageChannel(max_size=2)
        channel.put("last")
        channel.close()

        assert channel.put("late") is False
        assert channel.get(timeout=0) == "last"
        assert channel.get(timeout=None) is None
        assert channel.closed

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            MessageChannel(max_size=0)
