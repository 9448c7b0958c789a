"""
SpotPulse – Domain Exceptions
===============================
Excepciones específicas del dominio.

JERARQUÍA:
    DomainError (base)
    ├── MalformedPayloadError    → mensaje del feed inválido (se descarta)
    ├── ExchangeMetadataError    → exchangeInfo inaccesible o incompleto
    ├── NotificationError        → fallo del canal de notificaciones
    └── ConfigurationError       → configuración inválida (fatal al arranque)
"""

from __future__ import annotations


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class MalformedPayloadError(DomainError):
    """Mensaje del feed que no se puede interpretar."""

    def __init__(self, message: str, payload: str = None):
        super().__init__(message, code="MALFORMED_PAYLOAD")
        self.payload = payload


class ExchangeMetadataError(DomainError):
    """No se pudo obtener el step size de un símbolo."""

    def __init__(self, message: str, symbol: str = None):
        super().__init__(message, code="EXCHANGE_METADATA")
        self.symbol = symbol


class ConfigurationError(DomainError):
    """Configuración inválida o incompleta. Fatal antes de abrir el stream."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, code="CONFIGURATION")
        self.field = field


class NotificationError(DomainError):
    """El canal de notificaciones rechazó o no recibió el mensaje.

    El mensaje nunca incluye la URL de la petición: contiene el token del bot.
    """

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message, code="NOTIFICATION")
        self.status_code = status_code
