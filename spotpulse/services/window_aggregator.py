"""
SpotPulse – Window Aggregator
==============================
Pliega trades y velas en ventanas rodantes de precios por símbolo.

═══════════════════════════════════════════════════════════════
            POLÍTICAS DE POBLACIÓN DE LA VENTANA
═══════════════════════════════════════════════════════════════

  candle:  la ventana contiene closes de velas.
           - vela en formación → sobreescribe el slot provisional
           - vela final        → congela el slot (o añade si no hay)
           - trades            → NO tocan la ventana; solo disparan evaluación

  tick:    la ventana contiene cada precio de trade distinto.
           - trades → append directo
           - velas  → ignoradas

  hybrid:  trades y closes finales comparten el último slot.
           - trade      → sobreescribe el slot provisional
           - vela final → congela el slot con el close

  merged:  trades y closes finales se añaden a la misma serie.
           - trades     → append directo (como tick)
           - vela final → append del close
           - vela en formación → ignorada

En todas las políticas el contrato es el mismo: capacidad fija, desalojo
FIFO y supresión de precios duplicados consecutivos.

DUPLICADOS:
  Un trade con el mismo precio que el último observado para ese símbolo
  se descarta: on_tick() devuelve False y NO se evalúa nada.

RECONEXIÓN:
  reset() vacía ventanas, historial de velas y últimos precios. La
  historia parcial tras un hueco no es fiable; se reconstruye desde cero.
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Dict, Optional

from spotpulse.domain.entities.candle import Candle
from spotpulse.shared.logging.logger import get_logger
from spotpulse.state.price_window import PriceWindow

logger = get_logger("window_aggregator")


class WindowPolicy(str, Enum):
    CANDLE = "candle"
    TICK = "tick"
    HYBRID = "hybrid"
    MERGED = "merged"


class WindowAggregator:
    """
    Mantiene una PriceWindow y un historial corto de velas finales por
    símbolo.

    Uso:
        aggregator = WindowAggregator(WindowPolicy.CANDLE, capacity=25)
        aggregator.on_candle_update(candle)
        if aggregator.on_tick("ARUSDT", 5.123):
            window = aggregator.window("ARUSDT")   # → evaluar
    """

    def __init__(
        self,
        policy: WindowPolicy | str = WindowPolicy.CANDLE,
        capacity: int = 25,
        candle_history: int = 8,
    ) -> None:
        self._policy = WindowPolicy(policy)
        self._capacity = capacity
        self._candle_history = candle_history

        self._windows: Dict[str, PriceWindow] = {}
        self._candles: Dict[str, deque[Candle]] = {}
        self._last_tick: Dict[str, float] = {}
        self._last_final_open: Dict[str, float] = {}

        self._duplicates_suppressed = 0
        logger.info(
            "WindowAggregator inicializado (policy=%s, capacity=%d)",
            self._policy.value, capacity,
        )

    @property
    def policy(self) -> WindowPolicy:
        return self._policy

    def _window_for(self, symbol: str) -> PriceWindow:
        if symbol not in self._windows:
            self._windows[symbol] = PriceWindow(self._capacity)
        return self._windows[symbol]

    # ════════════════════════════════════════════════════════════════
    #  ENTRADAS
    # ════════════════════════════════════════════════════════════════

    def on_candle_update(self, candle: Candle) -> bool:
        """
        Procesar una actualización de kline.

        Returns:
            True si se registró una vela final NUEVA (para evaluadores de
            velas), False en cualquier otro caso.
        """
        symbol = candle.symbol

        if candle.is_final:
            if self._last_final_open.get(symbol) == candle.open_time:
                return False
            self._last_final_open[symbol] = candle.open_time
            history = self._candles.setdefault(
                symbol, deque(maxlen=self._candle_history)
            )
            history.append(candle)

        if self._policy == WindowPolicy.CANDLE:
            window = self._window_for(symbol)
            if candle.is_final:
                window.finalize(candle.close)
                logger.debug("Vela cerrada %s C=%.5f (len=%d)", symbol, candle.close, len(window))
            else:
                window.set_provisional(candle.close)
        elif self._policy == WindowPolicy.HYBRID and candle.is_final:
            self._window_for(symbol).finalize(candle.close)
        elif self._policy == WindowPolicy.MERGED and candle.is_final:
            self._window_for(symbol).append(candle.close)

        return candle.is_final

    def on_tick(self, symbol: str, price: float) -> bool:
        """
        Procesar un precio de trade.

        Returns:
            True si el precio es distinto del último observado (→ evaluar),
            False si es un duplicado consecutivo.
        """
        if self._last_tick.get(symbol) == price:
            self._duplicates_suppressed += 1
            return False
        self._last_tick[symbol] = price

        if self._policy in (WindowPolicy.TICK, WindowPolicy.MERGED):
            self._window_for(symbol).append(price)
        elif self._policy == WindowPolicy.HYBRID:
            self._window_for(symbol).set_provisional(price)

        return True

    def reset(self, symbol: Optional[str] = None) -> None:
        """Descartar todo el estado rodante (un símbolo o todos)."""
        if symbol is None:
            for window in self._windows.values():
                window.clear()
            self._candles.clear()
            self._last_tick.clear()
            self._last_final_open.clear()
            logger.info("Ventanas reiniciadas (todos los símbolos)")
            return

        if symbol in self._windows:
            self._windows[symbol].clear()
        self._candles.pop(symbol, None)
        self._last_tick.pop(symbol, None)
        self._last_final_open.pop(symbol, None)
        logger.info("Ventana reiniciada para '%s'", symbol)

    # ════════════════════════════════════════════════════════════════
    #  CONSULTAS
    # ════════════════════════════════════════════════════════════════

    def window(self, symbol: str) -> tuple[float, ...]:
        window = self._windows.get(symbol)
        return window.snapshot() if window is not None else ()

    def candles(self, symbol: str) -> tuple[Candle, ...]:
        return tuple(self._candles.get(symbol, ()))

    def last_price(self, symbol: str) -> Optional[float]:
        return self._last_tick.get(symbol)

    def snapshot(self) -> dict:
        return {
            "policy": self._policy.value,
            "capacity": self._capacity,
            "duplicates_suppressed": self._duplicates_suppressed,
            "windows": {s: len(w) for s, w in self._windows.items()},
        }
