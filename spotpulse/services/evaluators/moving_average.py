"""
SpotPulse – Moving-Average Evaluators
=======================================
Familia de variantes basadas en media corta vs media larga.

═══════════════════════════════════════════════════════════════
                    INDICADORES POR EVALUACIÓN
═══════════════════════════════════════════════════════════════

  short(0), short(1), short(2)   media corta actual / anterior / dos atrás
  long(0),  long(1),  long(2)    media larga actual / anterior / dos atrás
  short(4)                       media corta "pasada" (regression_dip)
  slope                          pendiente de los últimos 5 precios

  Solo se evalúa si len(window) > min_history. Con menos datos → HOLD.

═══════════════════════════════════════════════════════════════
                    MEMORIA DE SEÑALES (SignalState)
═══════════════════════════════════════════════════════════════

  CROSSED_DOWN:
    short(1) ≥ long(1) y short(0) < long(0) → activar
    short(0) > long(0) y short(1) ≤ long(1) → limpiar

  RISING  (por defecto): short(2) < short(1) < short(0)
  FALLING (por defecto): short(2) > short(1) > short(0)

  Modo de memoria de tendencia:
    latched     → una vez activado, se mantiene hasta un reset
    per_tick    → se recalcula en cada evaluación
    until_exit  → se mantiene hasta que se cierra la posición

═══════════════════════════════════════════════════════════════
                    VARIANTES
═══════════════════════════════════════════════════════════════

  crossover_trend       BUY  rising ∧ crossed_down      SELL falling
  crossover_reversal    BUY  falling                    SELL crossed_down ∧ rising
  crossover_divergence  BUY  crossed_down ∧ precio < short − δ
                        SELL precio > short + δ
  falling_target        BUY  falling                    SELL entry × (1 + tp)
  regression_dip        BUY  short < long ∧ caída desde short(4) > 1%
                             ∧ pendiente < 0            SELL entry × (1 + tp)

INVARIANTES:
  - BUY solo sin posición abierta.
  - SELL solo si la posición abierta es de ESTE símbolo.
  - Como máximo una Decision por evaluación.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from spotpulse.domain.entities.decision import Decision
from spotpulse.domain.entities.position import Position
from spotpulse.domain.services.indicator_calculator import (
    ROUNDING_CEILING,
    ROUNDING_HALF_UP,
    IndicatorCalculator,
)
from spotpulse.services.evaluators.base import (
    TRIGGER_TICK,
    MarketSnapshot,
    SignalEvaluator,
)
from spotpulse.shared.logging.logger import get_logger
from spotpulse.state.engine_state import EngineState, SignalState

logger = get_logger("evaluators.moving_average")

TREND_LATCHED = "latched"
TREND_PER_TICK = "per_tick"
TREND_UNTIL_EXIT = "until_exit"

_TREND_MODES = (TREND_LATCHED, TREND_PER_TICK, TREND_UNTIL_EXIT)


@dataclass(frozen=True, slots=True)
class MovingAverages:
    short: float
    short_prev: float
    short_old: float
    long: float
    long_prev: float
    long_old: float
    short_past: Optional[float] = None
    slope: Optional[float] = None


class MovingAverageEvaluator(SignalEvaluator):
    """
    Base de las variantes short/long. Las subclases definen `_decide`
    y, si lo necesitan, sus propias condiciones de tendencia.
    """

    trigger = TRIGGER_TICK

    default_scale: Optional[int] = 2
    default_rounding: Optional[str] = ROUNDING_CEILING
    default_trend_memory: str = TREND_LATCHED
    default_take_profit: Optional[float] = None
    take_profit_reason = "Target reached"
    stop_loss_reason = "Stop loss"

    past_offset = 4
    slope_points = 5

    def __init__(
        self,
        short_period: int = 3,
        long_period: int = 20,
        min_history: int = 22,
        scale: Optional[int] = ...,
        rounding: Optional[str] = ...,
        trend_memory: Optional[str] = None,
        take_profit_pct: Optional[float] = None,
        stop_loss_pct: Optional[float] = None,
    ) -> None:
        if short_period <= 0 or long_period <= 0:
            raise ValueError("moving-average periods must be positive")
        self.short_period = short_period
        self.long_period = long_period
        self.min_history = min_history
        self.scale = self.default_scale if scale is ... else scale
        self.rounding = self.default_rounding if rounding is ... else rounding
        self.trend_memory = trend_memory or self.default_trend_memory
        if self.trend_memory not in _TREND_MODES:
            raise ValueError(f"Unknown trend memory mode: {self.trend_memory}")
        self.take_profit_pct = (
            take_profit_pct if take_profit_pct is not None else self.default_take_profit
        )
        self.stop_loss_pct = stop_loss_pct

    # ════════════════════════════════════════════════════════════════
    #  INDICADORES
    # ════════════════════════════════════════════════════════════════

    def _ma(self, window: tuple, period: int, offset: int) -> Optional[float]:
        return IndicatorCalculator.moving_average(
            window, period, offset, scale=self.scale, rounding=self.rounding,
        )

    def compute(self, window: tuple) -> Optional[MovingAverages]:
        """Medias con offset 0/1/2 (+ extras). None si falta historia."""
        shorts = [self._ma(window, self.short_period, i) for i in range(3)]
        longs = [self._ma(window, self.long_period, i) for i in range(3)]
        if None in shorts or None in longs:
            return None

        slope = None
        if len(window) >= self.slope_points:
            slope = IndicatorCalculator.regression_slope(window[-self.slope_points:])

        return MovingAverages(
            short=shorts[0],
            short_prev=shorts[1],
            short_old=shorts[2],
            long=longs[0],
            long_prev=longs[1],
            long_old=longs[2],
            short_past=self._ma(window, self.short_period, self.past_offset),
            slope=slope,
        )

    # ─── Tendencia ──────────────────────────────────────────────────

    def is_rising(self, ma: MovingAverages) -> bool:
        return ma.short_old < ma.short_prev < ma.short

    def is_falling(self, ma: MovingAverages) -> bool:
        return ma.short_old > ma.short_prev > ma.short

    def _update_trend(self, signal: SignalState, ma: MovingAverages) -> None:
        rising = self.is_rising(ma)
        falling = self.is_falling(ma)
        if self.trend_memory == TREND_PER_TICK:
            signal.rising = rising
            signal.falling = falling
            return
        if rising:
            signal.rising = True
        if falling:
            signal.falling = True

    # ════════════════════════════════════════════════════════════════
    #  EVALUACIÓN
    # ════════════════════════════════════════════════════════════════

    def evaluate(self, snapshot: MarketSnapshot, state: EngineState) -> Decision:
        symbol = snapshot.symbol
        if len(snapshot.window) <= self.min_history:
            return Decision.hold(symbol)

        ma = self.compute(snapshot.window)
        if ma is None:
            return Decision.hold(symbol)

        signal = state.signal_state(symbol)
        signal.apply_crossover(ma.short_prev, ma.short, ma.long_prev, ma.long)
        self._update_trend(signal, ma)

        if state.holds(symbol):
            exit_decision = self._band_exit(snapshot, state.position)
            if exit_decision is not None:
                return exit_decision

        return self._decide(snapshot, ma, signal, state)

    def _band_exit(self, snapshot: MarketSnapshot, position: Position) -> Optional[Decision]:
        price = snapshot.price
        if self.take_profit_pct is not None and price >= position.entry_price * (1 + self.take_profit_pct):
            return Decision.sell(snapshot.symbol, price, self.take_profit_reason)
        if self.stop_loss_pct is not None and price <= position.entry_price * (1 - self.stop_loss_pct):
            return Decision.sell(snapshot.symbol, price, self.stop_loss_reason)
        return None

    def _decide(
        self,
        snapshot: MarketSnapshot,
        ma: MovingAverages,
        signal: SignalState,
        state: EngineState,
    ) -> Decision:
        raise NotImplementedError

    def on_position_closed(self, symbol: str, state: EngineState) -> None:
        if self.trend_memory == TREND_UNTIL_EXIT:
            state.signal_state(symbol).clear_trend()

    def snapshot(self) -> dict:
        base = super().snapshot()
        base.update({
            "short_period": self.short_period,
            "long_period": self.long_period,
            "min_history": self.min_history,
            "scale": self.scale,
            "rounding": self.rounding,
            "trend_memory": self.trend_memory,
            "take_profit_pct": self.take_profit_pct,
            "stop_loss_pct": self.stop_loss_pct,
        })
        return base


# ════════════════════════════════════════════════════════════════════
#  VARIANTES
# ════════════════════════════════════════════════════════════════════


class CrossoverTrendEvaluator(MovingAverageEvaluator):
    """
    Compra cuando la corta cruzó por debajo de la larga y vuelve a subir
    mientras la larga sigue bajando. Vende cuando la corta cae.
    """

    name = "crossover_trend"

    def is_rising(self, ma: MovingAverages) -> bool:
        long_falling = ma.long_old > ma.long_prev > ma.long
        return super().is_rising(ma) and long_falling

    def _decide(self, snapshot, ma, signal, state):
        if not state.has_position and signal.rising and signal.crossed_down:
            return Decision.buy(snapshot.symbol, snapshot.price, "Crossed down and rising")
        if state.holds(snapshot.symbol) and signal.falling:
            return Decision.sell(snapshot.symbol, snapshot.price, "Price falling")
        return Decision.hold(snapshot.symbol)


class CrossoverReversalEvaluator(MovingAverageEvaluator):
    """Compra en caída; vende cuando tras un cruce bajista la corta gira al alza."""

    name = "crossover_reversal"
    default_scale = 3
    default_trend_memory = TREND_PER_TICK

    def _decide(self, snapshot, ma, signal, state):
        if state.holds(snapshot.symbol) and signal.crossed_down and signal.rising:
            return Decision.sell(snapshot.symbol, snapshot.price, "Reversal")
        if not state.has_position and signal.falling:
            return Decision.buy(snapshot.symbol, snapshot.price, "Price falling")
        return Decision.hold(snapshot.symbol)


class CrossoverDivergenceEvaluator(MovingAverageEvaluator):
    """
    Compra cuando el precio se separa por debajo de la media corta tras un
    cruce bajista; vende cuando se separa por encima.
    """

    name = "crossover_divergence"
    default_scale = 3
    default_rounding = ROUNDING_HALF_UP

    def __init__(
        self,
        *args,
        price_offset: float = 0.015,
        min_quote_balance: float = 10.0,
        min_base_balance: float = 5.0,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.price_offset = price_offset
        self.min_quote_balance = min_quote_balance
        self.min_base_balance = min_base_balance

    def _decide(self, snapshot, ma, signal, state):
        price = snapshot.price
        if (
            not state.has_position
            and signal.crossed_down
            and snapshot.quote_balance > self.min_quote_balance
            and price < ma.short - self.price_offset
        ):
            return Decision.buy(snapshot.symbol, price, "Below short average")
        if (
            state.holds(snapshot.symbol)
            and snapshot.base_balance > self.min_base_balance
            and price > ma.short + self.price_offset
        ):
            return Decision.sell(snapshot.symbol, price, "Reversal")
        return Decision.hold(snapshot.symbol)


class FallingTargetEvaluator(MovingAverageEvaluator):
    """Compra cuando la corta cae; sale solo por objetivo de beneficio."""

    name = "falling_target"
    default_trend_memory = TREND_UNTIL_EXIT
    default_take_profit = 0.005
    take_profit_reason = "Target attained"

    def _decide(self, snapshot, ma, signal, state):
        if not state.has_position and signal.falling:
            return Decision.buy(snapshot.symbol, snapshot.price, "Price fell")
        return Decision.hold(snapshot.symbol)


class RegressionDipEvaluator(MovingAverageEvaluator):
    """
    Compra en una caída confirmada: corta bajo la larga, descenso mayor
    que `min_drop` respecto a la corta de hace 4 precios y pendiente
    negativa. Sale por objetivo de beneficio.
    """

    name = "regression_dip"
    default_scale = None
    default_rounding = None
    default_take_profit = 0.005

    def __init__(self, *args, min_drop: float = 0.01, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.min_drop = min_drop

    def _decide(self, snapshot, ma, signal, state):
        if state.has_position or ma.short_past is None or ma.slope is None:
            return Decision.hold(snapshot.symbol)
        if ma.short_past == 0:
            return Decision.hold(snapshot.symbol)

        drop = (ma.short_past - ma.short) / ma.short_past
        if ma.short < ma.long and drop > self.min_drop and ma.slope < 0:
            logger.debug(
                "Caída en %s: drop=%.4f slope=%.6f", snapshot.symbol, drop, ma.slope,
            )
            return Decision.buy(snapshot.symbol, snapshot.price, "Dip below long average")
        return Decision.hold(snapshot.symbol)
