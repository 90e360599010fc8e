"""Core module - Núcleo de conexión y estado del feed de temperatura.

Estructura:
- domain/      → Lecturas, estados, configuración
- validation/  → Codec de payloads
- history/     → Buffer acotado de lecturas recientes
- transport/   → Sesión MQTT (paho) como canal de eventos
- monitoring/  → Estadísticas y métricas
"""
