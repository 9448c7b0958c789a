"""
SpotPulse – Domain Entity: Decision
=====================================
Resultado de UNA evaluación del Signal Evaluator.

Por defecto es HOLD. Un evaluador nunca emite BUY y SELL en el mismo
tick: devuelve exactamente una Decision.

ALERT lo usan los evaluadores que solo avisan (no ejecutan).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Action(str, Enum):
    HOLD = "HOLD"
    BUY = "BUY"
    SELL = "SELL"
    ALERT = "ALERT"


@dataclass(frozen=True, slots=True)
class Decision:
    action: Action
    symbol: str = ""
    price: float = 0.0
    reason: str = ""

    @classmethod
    def hold(cls, symbol: str = "") -> "Decision":
        return cls(Action.HOLD, symbol)

    @classmethod
    def buy(cls, symbol: str, price: float, reason: str = "") -> "Decision":
        return cls(Action.BUY, symbol, price, reason)

    @classmethod
    def sell(cls, symbol: str, price: float, reason: str) -> "Decision":
        return cls(Action.SELL, symbol, price, reason)

    @classmethod
    def alert(cls, symbol: str, price: float, reason: str) -> "Decision":
        return cls(Action.ALERT, symbol, price, reason)

    @property
    def is_hold(self) -> bool:
        return self.action == Action.HOLD

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "symbol": self.symbol,
            "price": self.price,
            "reason": self.reason,
        }
