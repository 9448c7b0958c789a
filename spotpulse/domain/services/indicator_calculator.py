"""
SpotPulse – Domain Service: Indicator Calculator
==================================================
Cálculos de indicadores técnicos puros sobre snapshots de ventana.

Sin dependencias externas (no TA-Lib, no pandas): las ventanas tienen
25 precios, convertir a arrays cuesta más que sumar.

═══════════════════════════════════════════════════════════════
                MEDIA MÓVIL CON OFFSET
═══════════════════════════════════════════════════════════════

  moving_average(w, period=3, offset_from_end=0) → mean(w[-3:])
  moving_average(w, period=3, offset_from_end=1) → mean(w[-4:-1])
  moving_average(w, period=3, offset_from_end=2) → mean(w[-5:-2])

  Con offset 0/1/2 se obtienen las medias "actual", "anterior" y
  "dos atrás" que usan las reglas de cruce y tendencia.

═══════════════════════════════════════════════════════════════
                POLÍTICA DE REDONDEO
═══════════════════════════════════════════════════════════════

  ceiling:  ceil(x · 10^scale) / 10^scale
  half_up:  floor(x · 10^scale + 0.5) / 10^scale
  None:     sin redondeo

  El redondeo se hace en aritmética float, igual que los bots que
  definieron las estrategias. Así 2.005 → 2.01 con ceiling a 2
  decimales (2.005·100 = 200.4999…), y 2.004 → 2.01 con ceiling pero
  2.0 con half_up.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

ROUNDING_CEILING = "ceiling"
ROUNDING_HALF_UP = "half_up"


class IndicatorCalculator:
    """
    Calculadora de indicadores técnicos puros.

    NO mantiene estado (stateless). La memoria entre evaluaciones
    (cruces, tendencias) vive en SignalState.
    """

    @staticmethod
    def round_value(
        value: float,
        scale: Optional[int],
        rounding: Optional[str] = ROUNDING_CEILING,
    ) -> float:
        """Aplicar la política de redondeo de la variante."""
        if scale is None or rounding is None:
            return value
        factor = 10 ** scale
        if rounding == ROUNDING_CEILING:
            return math.ceil(value * factor) / factor
        if rounding == ROUNDING_HALF_UP:
            return math.floor(value * factor + 0.5) / factor
        raise ValueError(f"Unknown rounding policy: {rounding}")

    @staticmethod
    def moving_average(
        window: Sequence[float],
        period: int,
        offset_from_end: int = 0,
        scale: Optional[int] = None,
        rounding: Optional[str] = ROUNDING_CEILING,
    ) -> Optional[float]:
        """
        Media aritmética de los `period` precios que terminan
        `offset_from_end` posiciones antes del final de la ventana.

        Returns:
            Media (redondeada si scale no es None), o None si la ventana
            no tiene period + offset_from_end elementos.
        """
        if period <= 0 or offset_from_end < 0:
            return None
        n = len(window)
        if period + offset_from_end > n:
            return None

        end = n - offset_from_end
        values = list(window)[end - period:end]
        mean = sum(values) / period
        return IndicatorCalculator.round_value(mean, scale, rounding)

    @staticmethod
    def regression_slope(values: Sequence[float]) -> Optional[float]:
        """
        Pendiente de mínimos cuadrados de `values` contra su índice.

        FÓRMULA:
            slope = Σ (i − x̄)(y_i − ȳ) / Σ (i − x̄)²

        Returns:
            Pendiente, o None con menos de 2 puntos.
        """
        n = len(values)
        if n < 2:
            return None
        avg_x = (n - 1) / 2
        avg_y = sum(values) / n

        num = 0.0
        den = 0.0
        for i, y in enumerate(values):
            num += (i - avg_x) * (y - avg_y)
            den += (i - avg_x) ** 2
        return num / den

    @staticmethod
    def trend(a: float, b: float) -> str:
        """Dirección de a → b: U (sube), D (baja), E (igual)."""
        if b > a:
            return "U"
        if b < a:
            return "D"
        return "E"
