"""
SpotPulse – Domain Value Object: Tick
=======================================
Representa un trade individual recibido del stream `<symbol>@trade`.

- frozen=True → inmutable, seguro para pasar entre coroutines.
- slots=True  → menor footprint de memoria en hot-path.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Tick:
    """Trade atómico recibido del exchange."""

    symbol: str       # par spot (e.g. "ARUSDT")
    price: float      # precio del trade
    timestamp: float  # epoch en segundos

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "timestamp": self.timestamp,
        }
