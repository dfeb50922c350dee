"""Core module - Hub de telemetría en memoria.

Estructura:
- domain/      → Modelos de dominio (lecturas, dispositivos)
- monitoring/  → Estadísticas
- pipeline.py  → Ingesta (único escritor del estado)
- hub.py       → Dueño explícito del estado y de los componentes
- errors.py    → Errores de dominio
"""
