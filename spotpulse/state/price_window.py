"""
SpotPulse – Price Window
=========================
Secuencia de precios de capacidad fija por símbolo.

INVARIANTES:
  - len(window) ≤ capacity
  - Al desbordar se descarta el MÁS ANTIGUO (FIFO). collections.deque con
    maxlen lo hace en O(1).
  - Desde fuera es append-only: la única forma de quitar un precio es el
    desbordamiento (o clear() tras una reconexión).

SLOT PROVISIONAL:
  El último elemento puede ser "provisional": el close de la vela que aún
  se está formando, o el último precio de trade en la política híbrida.
  Un slot provisional se SOBREESCRIBE en lugar de añadirse, así una vela
  en formación nunca se cuenta dos veces.

      set_provisional(10) → [.., 10*]
      set_provisional(11) → [.., 11*]      ← sobreescribe
      finalize(12)        → [.., 12]       ← congela el slot
      finalize(13)        → [.., 12, 13]   ← no había provisional: añade
"""

from __future__ import annotations

from collections import deque
from typing import Optional


class PriceWindow:
    """Ventana FIFO de capacidad fija con un slot provisional opcional."""

    __slots__ = ("_prices", "_provisional")

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._prices: deque[float] = deque(maxlen=capacity)
        self._provisional = False

    # ════════════════════════════════════════════════════════════════
    #  ESCRITURA
    # ════════════════════════════════════════════════════════════════

    def append(self, price: float) -> None:
        """Añadir un precio cerrado (descarta el más antiguo si está llena)."""
        self._prices.append(price)
        self._provisional = False

    def set_provisional(self, price: float) -> None:
        """Escribir en el slot provisional, creándolo si no existe."""
        if self._provisional and self._prices:
            self._prices[-1] = price
            return
        self._prices.append(price)
        self._provisional = True

    def finalize(self, price: float) -> None:
        """Congelar el slot provisional con `price`, o añadirlo si no hay."""
        if self._provisional and self._prices:
            self._prices[-1] = price
            self._provisional = False
            return
        self.append(price)

    def clear(self) -> None:
        self._prices.clear()
        self._provisional = False

    # ════════════════════════════════════════════════════════════════
    #  CONSULTAS
    # ════════════════════════════════════════════════════════════════

    @property
    def capacity(self) -> int:
        return self._prices.maxlen or 0

    @property
    def has_provisional(self) -> bool:
        return self._provisional

    @property
    def last(self) -> Optional[float]:
        return self._prices[-1] if self._prices else None

    def snapshot(self) -> tuple[float, ...]:
        """Copia inmutable para los cálculos de indicadores."""
        return tuple(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self) -> str:
        return f"PriceWindow({list(self._prices)!r}, provisional={self._provisional})"
