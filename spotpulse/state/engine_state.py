"""
SpotPulse – Engine State
=========================
Estado mutable compartido del motor, en UN objeto explícito.

Contiene:
  - position:  la única posición abierta (o None)
  - buying / selling: guardas de re-entrada. Se activan ANTES de empezar una
    ejecución y se limpian al terminar o fallar (try/finally en el ledger).
    Evitan que una ráfaga de ticks casi simultáneos, que llega mientras una
    ejecución está suspendida en un await, lance una segunda ejecución del
    mismo lado.
  - signal_states: memoria por símbolo del Signal Evaluator (cruces y
    tendencias), leída por él mismo en el siguiente tick.

THREADING:
  Todo corre en un solo event-loop asyncio. No se necesitan locks: las
  guardas bastan porque solo hay suspensión en puntos await explícitos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from spotpulse.domain.entities.position import Position


@dataclass
class SignalState:
    """Memoria del evaluador para UN símbolo."""

    crossed_down: bool = False
    rising: bool = False
    falling: bool = False

    def apply_crossover(
        self,
        short_prev: float,
        short_curr: float,
        long_prev: float,
        long_curr: float,
    ) -> None:
        """
        Transiciones de cruce:
          short(prev) ≥ long(prev) y short(curr) < long(curr) → CROSSED_DOWN
          short(curr) > long(curr) y short(prev) ≤ long(prev) → limpiar
        """
        if short_prev >= long_prev and short_curr < long_curr:
            self.crossed_down = True
        if short_curr > long_curr and short_prev <= long_prev:
            self.crossed_down = False

    def clear_trend(self) -> None:
        self.rising = False
        self.falling = False

    def reset(self) -> None:
        self.crossed_down = False
        self.clear_trend()

    def to_dict(self) -> dict:
        return {
            "crossed_down": self.crossed_down,
            "rising": self.rising,
            "falling": self.falling,
        }


@dataclass
class EngineState:
    position: Optional[Position] = None
    buying: bool = False
    selling: bool = False
    signal_states: Dict[str, SignalState] = field(default_factory=dict)

    def signal_state(self, symbol: str) -> SignalState:
        """Obtener memoria de un símbolo; crearla si no existe."""
        if symbol not in self.signal_states:
            self.signal_states[symbol] = SignalState()
        return self.signal_states[symbol]

    # ════════════════════════════════════════════════════════════════
    #  CONSULTAS
    # ════════════════════════════════════════════════════════════════

    @property
    def has_position(self) -> bool:
        return self.position is not None

    def holds(self, symbol: str) -> bool:
        """¿La posición abierta pertenece a este símbolo?"""
        return self.position is not None and self.position.symbol == symbol

    @property
    def idle(self) -> bool:
        """Sin posición y sin compra en curso."""
        return self.position is None and not self.buying

    # ════════════════════════════════════════════════════════════════
    #  RESET
    # ════════════════════════════════════════════════════════════════

    def reset_guards(self) -> None:
        self.buying = False
        self.selling = False

    def reset_signals(self, symbol: str | None = None) -> None:
        if symbol is None:
            for state in self.signal_states.values():
                state.reset()
            return
        if symbol in self.signal_states:
            self.signal_states[symbol].reset()

    def snapshot(self) -> dict:
        return {
            "position": self.position.to_dict() if self.position else None,
            "buying": self.buying,
            "selling": self.selling,
            "signals": {s: st.to_dict() for s, st in self.signal_states.items()},
        }
