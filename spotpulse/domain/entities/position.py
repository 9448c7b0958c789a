"""
SpotPulse – Domain Entity: Position
=====================================
Posición spot abierta. Existe como MÁXIMO una en todo el proceso.

CICLO DE VIDA:
  BUY ejecutado  ──▸ Position creada (entry_price = ask simulado)
  SELL ejecutado ──▸ Position destruida

No hay fills parciales: la cantidad es atómica y se vende completa.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Position:
    symbol: str
    entry_price: float       # ask simulado pagado
    quantity: float
    reference_price: float   # precio de mercado que disparó la compra
    opened_at: float = field(default_factory=time.time)

    @property
    def cost(self) -> float:
        return self.entry_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "entry_price": round(self.entry_price, 8),
            "quantity": self.quantity,
            "reference_price": self.reference_price,
            "cost": round(self.cost, 8),
            "opened_at": self.opened_at,
        }
