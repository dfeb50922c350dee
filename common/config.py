from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple
from urllib.parse import urlparse

from dotenv import load_dotenv


def _default_env_file() -> str:
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


@dataclass(frozen=True)
class Settings:
    mqtt_broker_host: str
    mqtt_broker_port: int
    mqtt_username: str | None
    mqtt_password: str | None
    mqtt_client_id: str

    temperature_topic: str
    humidity_topic: str
    extra_topics: Tuple[str, ...]

    # Intervalo fijo entre reintentos de conexión (segundos)
    mqtt_reconnect_seconds: float
    mqtt_channel_max_size: int

    max_history: int
    http_port: int
    ws_queue_size: int
    log_level: str

    @property
    def topics(self) -> Tuple[str, ...]:
        ordered = [self.temperature_topic, self.humidity_topic, *self.extra_topics]
        # dict.fromkeys conserva el orden y elimina duplicados
        return tuple(dict.fromkeys(t for t in ordered if t))


def _read_int(name: str, default: int, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _read_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_broker_url(url: str) -> Tuple[str, int]:
    """Convierte ``mqtt://host:port`` en (host, port)."""
    parsed = urlparse(url if "://" in url else f"mqtt://{url}")
    return parsed.hostname or "localhost", parsed.port or 1883


def _split_topics(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(t.strip() for t in raw.split(",") if t.strip())


@lru_cache
def get_settings() -> Settings:
    # Carga .env (si existe) sin pisar variables reales del entorno.
    env_file = os.getenv("TELEMETRY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    host, port = _parse_broker_url(os.getenv("MQTT_BROKER", "mqtt://localhost:1883"))
    host = os.getenv("MQTT_BROKER_HOST") or host
    port = _read_int("MQTT_BROKER_PORT", port)

    return Settings(
        mqtt_broker_host=host,
        mqtt_broker_port=port,
        mqtt_username=os.getenv("MQTT_USERNAME") or None,
        mqtt_password=os.getenv("MQTT_PASSWORD") or None,
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", "web-server"),
        temperature_topic=os.getenv("MQTT_TOPIC_TEMPERATURE", "iot/sensor/temperature"),
        humidity_topic=os.getenv("MQTT_TOPIC_HUMIDITY", "iot/sensor/humidity"),
        extra_topics=_split_topics(os.getenv("MQTT_EXTRA_TOPICS")),
        mqtt_reconnect_seconds=_read_float("MQTT_RECONNECT_SECONDS", 2.0),
        mqtt_channel_max_size=_read_int("MQTT_CHANNEL_MAX_SIZE", 10000),
        max_history=_read_int("MAX_HISTORY", 100),
        http_port=_read_int("PORT", 3000),
        ws_queue_size=_read_int("WS_QUEUE_SIZE", 100),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )
