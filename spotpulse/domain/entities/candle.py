"""
SpotPulse – Domain Entity: Candle
===================================
Actualización OHLC de un kline de Binance.

Decisiones de diseño:
- frozen=True → cada actualización es un valor inmutable. La vela "abierta"
  no se muta: llegan actualizaciones sucesivas con is_final=False y una
  última con is_final=True cuando cierra el bucket.
- Se usa dataclass por rendimiento (más ligera que Pydantic para hot-path).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLC con timestamp de apertura del bucket."""

    symbol: str
    open_time: float     # epoch de apertura del bucket
    open: float
    high: float
    low: float
    close: float
    is_final: bool = False

    @property
    def body_mid(self) -> float:
        """Punto medio del cuerpo: (open + close) / 2."""
        return (self.open + self.close) / 2

    @property
    def range_mid(self) -> float:
        """Punto medio del rango: (high + low) / 2."""
        return (self.high + self.low) / 2

    @property
    def color(self) -> str:
        """G = alcista, R = bajista, E = doji."""
        if self.open > self.close:
            return "R"
        if self.open < self.close:
            return "G"
        return "E"

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "open_time": self.open_time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "is_final": self.is_final,
        }
