"""
SpotPulse – Shared Module
==========================
Utilidades transversales usadas por todas las capas.

- config/: Settings y configuración
- logging/: Setup de logging

NOTA: Este módulo no contiene lógica de negocio.
"""

from spotpulse.shared.config.settings import Settings, settings
from spotpulse.shared.logging.logger import setup_logging, get_logger

__all__ = [
    "Settings",
    "settings",
    "setup_logging",
    "get_logger",
]
