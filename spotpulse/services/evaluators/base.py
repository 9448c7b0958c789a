"""
SpotPulse – Signal Evaluator (contrato común)
===============================================
Todas las variantes de estrategia comparten un único contrato:

    evaluate(snapshot, state) → Decision

- `snapshot` es una vista INMUTABLE del mercado en el instante de la
  evaluación (ventana, velas, ticker, saldos).
- `state` es el EngineState compartido. El evaluador lee la posición y
  las guardas, y escribe SOLO en su memoria de señales (SignalState).
- El resultado es exactamente UNA Decision (HOLD por defecto).

DISPARADORES:
  Cada variante declara qué tipo de evento la dispara:
    "tick"   → cada trade con precio nuevo
    "candle" → cada vela final nueva
    "ticker" → cada snapshot 24h
  El pipeline no evalúa con los demás eventos.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from spotpulse.domain.entities.candle import Candle
from spotpulse.domain.entities.decision import Decision
from spotpulse.domain.value_objects.market_updates import TickerUpdate
from spotpulse.state.engine_state import EngineState

TRIGGER_TICK = "tick"
TRIGGER_CANDLE = "candle"
TRIGGER_TICKER = "ticker"

DecisionHandler = Callable[[Decision], Awaitable[None]]


@dataclass(frozen=True)
class MarketSnapshot:
    """Vista del mercado para UNA evaluación."""

    symbol: str
    price: float
    timestamp: float = 0.0
    window: tuple = ()
    candles: tuple[Candle, ...] = ()
    ticker: Optional[TickerUpdate] = None
    quote_balance: float = 0.0
    base_balance: float = 0.0
    new_candle: bool = False


class SignalEvaluator(ABC):
    """Base de todas las variantes de estrategia."""

    name: str = "base"
    trigger: str = TRIGGER_TICK

    @abstractmethod
    def evaluate(self, snapshot: MarketSnapshot, state: EngineState) -> Decision:
        ...

    def bind(self, handler: DecisionHandler) -> None:
        """Registrar el ejecutor de decisiones diferidas (solo variantes por lotes)."""

    def on_position_closed(self, symbol: str, state: EngineState) -> None:
        """Hook tras un SELL ejecutado."""

    def discard_pending(self) -> None:
        """Descartar trabajo acumulado tras un error de procesamiento."""

    def reset(self) -> None:
        """Olvidar todo el estado interno (reconexión del feed)."""
        self.discard_pending()

    def snapshot(self) -> dict:
        return {"name": self.name, "trigger": self.trigger}
