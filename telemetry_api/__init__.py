"""IoT Telemetry Hub.

MQTT → normalización → historial acotado en memoria → push WebSocket,
más publicación de comandos de control hacia los dispositivos.
"""
