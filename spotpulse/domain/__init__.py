"""
SpotPulse – Domain Layer
=========================
Núcleo puro del sistema. CERO dependencias externas.

- entities/: Candle, Position, Decision
- value_objects/: Tick, TickerUpdate, FeedStatus
- services/: IndicatorCalculator, sizing
- events/: outcomes que se notifican
- exceptions/: excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de infrastructure/, presentation/,
application/ ni de frameworks externos.
"""

from spotpulse.domain.entities import Action, Candle, Decision, Position
from spotpulse.domain.value_objects import FeedStatus, Tick, TickerUpdate

__all__ = [
    "Action",
    "Candle",
    "Decision",
    "Position",
    "Tick",
    "TickerUpdate",
    "FeedStatus",
]
