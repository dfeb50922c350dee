"""Capa MQTT del hub.

Este módulo proporciona:
- Cliente MQTT con reconexión y re-suscripción automática
- Canal acotado hacia el pipeline de ingesta
- Normalización de payloads
- Publicación de comandos de control

Estructura modular:
- channel.py: Canal acotado (hilo paho → pipeline)
- client.py: Cliente MQTT principal
- normalizer.py: Payload crudo → NormalizedReading
- control.py: Comandos de control hacia dispositivos
"""

from .channel import BrokerMessage, MessageChannel
from .client import BrokerClient, PublishResult, SubscribeResult
from .control import ControlEnvelope, ControlPublisher, control_topic
from .normalizer import MessageNormalizer

__all__ = [
    "BrokerMessage",
    "MessageChannel",
    "BrokerClient",
    "PublishResult",
    "SubscribeResult",
    "ControlEnvelope",
    "ControlPublisher",
    "control_topic",
    "MessageNormalizer",
]
