"""
SpotPulse – Domain Value Objects: Ticker + Feed Status
========================================================
Eventos del feed que no son ni trades ni velas.

TickerUpdate:
  Resumen 24h de un símbolo (`@miniTicker` o `@ticker`). Solo se exigen
  los campos que usan los evaluadores: último precio, apertura del periodo,
  máximo y mínimo.

FeedStatus:
  Ciclo de vida de la conexión. Es la ÚNICA señal de conexión/desconexión
  que ven los componentes aguas abajo. Una desconexión invalida todo el
  estado rodante (ventanas, memoria de cruces, acumuladores).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TickerUpdate:
    """Snapshot 24h de un símbolo."""

    symbol: str
    last_price: float
    open_price: float
    high: float
    low: float
    timestamp: float = 0.0

    @property
    def change_pct(self) -> float:
        """Cambio porcentual desde la apertura del periodo."""
        if self.open_price == 0:
            return 0.0
        return ((self.last_price - self.open_price) / self.open_price) * 100.0

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "last_price": self.last_price,
            "open_price": self.open_price,
            "high": self.high,
            "low": self.low,
            "change_pct": round(self.change_pct, 4),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class FeedStatus:
    """Conexión establecida (connected=True) o perdida (connected=False)."""

    connected: bool
    reason: str = ""

    def to_dict(self) -> dict:
        return {"connected": self.connected, "reason": self.reason}
