"""
SpotPulse – Domain Service: Sizing & Spread
=============================================
Aritmética de ejecución simulada.

STEP SIZE:
  Binance define para cada par un incremento mínimo de cantidad
  (filtro LOT_SIZE). La precisión decimal es la posición del primer
  dígito distinto de cero:

      1.00000000 → 0 decimales
      0.01000000 → 2 decimales
      0.00100000 → 3 decimales

  La cantidad se TRUNCA (nunca se redondea hacia arriba) a esa precisión
  para no gastar más del presupuesto.

SPREAD SIMULADO:
  ask = price × (1 + spread / 2)
  bid = price × (1 − spread / 2)
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal


def step_precision(step_size: float) -> int:
    """Decimales hasta el primer dígito significativo del step size."""
    if step_size <= 0:
        raise ValueError(f"step_size must be positive, got {step_size}")
    exponent = Decimal(repr(step_size)).normalize().as_tuple().exponent
    return max(0, -exponent)


def floor_to_step(quantity: float, step_size: float) -> float:
    """Truncar `quantity` a la precisión del step size."""
    precision = step_precision(step_size)
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(quantity)).quantize(quantum, rounding=ROUND_DOWN))


def simulated_ask(price: float, spread_pct: float) -> float:
    return price * (1 + spread_pct / 2)


def simulated_bid(price: float, spread_pct: float) -> float:
    return price * (1 - spread_pct / 2)


def base_asset_of(symbol: str, quote_asset: str) -> str:
    """ARUSDT → AR"""
    if symbol.endswith(quote_asset) and len(symbol) > len(quote_asset):
        return symbol[: -len(quote_asset)]
    return symbol
