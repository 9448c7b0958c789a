"""
SpotPulse – Debounced Range Evaluator
=======================================
Selección por lotes: acumula un registro por símbolo durante una ventana
de `delay` segundos y al vencer compra el MEJOR candidato.

═══════════════════════════════════════════════════════════════
                    REGISTRO POR TICKER
═══════════════════════════════════════════════════════════════

  range            = high − low
  within_lower     = price ≤ low + range × lower_range_fraction
  projected_ok     = price × projected_gain ≤ high

  Un ticker nuevo del mismo símbolo REEMPLAZA su registro.

═══════════════════════════════════════════════════════════════
                    TEMPORIZADOR
═══════════════════════════════════════════════════════════════

  Se arma UNA vez (sin temporizador activo, sin posición y sin compra
  en curso). Al vencer:
    candidatos = registros con within_lower ∧ projected_ok
    mejor      = el de menor (price − low); en empate, el último
    → Decision BUY entregada al handler registrado con bind()
  Después, SIEMPRE: registros vacíos y temporizador desarmado.

  La salida es por tick: SELL cuando bid / entry ≥ target_gain.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional

from spotpulse.domain.entities.decision import Decision
from spotpulse.domain.services.sizing import simulated_bid
from spotpulse.services.evaluators.base import (
    TRIGGER_TICKER,
    DecisionHandler,
    MarketSnapshot,
    SignalEvaluator,
)
from spotpulse.shared.logging.logger import get_logger
from spotpulse.state.engine_state import EngineState

logger = get_logger("evaluators.debounced_range")


@dataclass(frozen=True, slots=True)
class RangeRecord:
    symbol: str
    price: float
    low: float
    within_lower_range: bool
    projected_below_high: bool

    @property
    def distance_from_low(self) -> float:
        return self.price - self.low


class DebouncedRangeEvaluator(SignalEvaluator):
    name = "debounced_range"
    trigger = TRIGGER_TICKER

    def __init__(
        self,
        delay: float = 1.0,
        lower_range_fraction: float = 0.2,
        projected_gain: float = 1.02,
        target_gain: float = 1.02,
        spread_pct: float = 0.002,
    ) -> None:
        self.delay = delay
        self.lower_range_fraction = lower_range_fraction
        self.projected_gain = projected_gain
        self.target_gain = target_gain
        self.spread_pct = spread_pct

        self._records: Dict[str, RangeRecord] = {}
        self._timer: Optional[asyncio.Task] = None
        self._handler: Optional[DecisionHandler] = None
        self._flushes = 0

    def bind(self, handler: DecisionHandler) -> None:
        self._handler = handler

    @property
    def armed(self) -> bool:
        return self._timer is not None

    @property
    def pending(self) -> Dict[str, RangeRecord]:
        return dict(self._records)

    # ════════════════════════════════════════════════════════════════
    #  EVALUACIÓN POR TICKER
    # ════════════════════════════════════════════════════════════════

    def record_for(self, snapshot: MarketSnapshot) -> RangeRecord:
        ticker = snapshot.ticker
        price = ticker.last_price
        lower_bound = ticker.low + (ticker.high - ticker.low) * self.lower_range_fraction
        return RangeRecord(
            symbol=snapshot.symbol,
            price=price,
            low=ticker.low,
            within_lower_range=price <= lower_bound,
            projected_below_high=price * self.projected_gain <= ticker.high,
        )

    def evaluate(self, snapshot: MarketSnapshot, state: EngineState) -> Decision:
        symbol = snapshot.symbol
        if snapshot.ticker is None:
            return Decision.hold(symbol)

        record = self.record_for(snapshot)
        self._records[symbol] = record

        if self._timer is None and state.idle:
            self._arm(state)

        if not state.selling and state.holds(symbol):
            bid = simulated_bid(record.price, self.spread_pct)
            if bid / state.position.entry_price >= self.target_gain:
                return Decision.sell(symbol, record.price, "Target reached")

        return Decision.hold(symbol)

    # ════════════════════════════════════════════════════════════════
    #  TEMPORIZADOR
    # ════════════════════════════════════════════════════════════════

    def _arm(self, state: EngineState) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._fire(state))
        logger.debug("Temporizador armado (%.2fs)", self.delay)

    async def _fire(self, state: EngineState) -> None:
        await asyncio.sleep(self.delay)
        try:
            best = self.select_best()
            if best is not None and state.idle and self._handler is not None:
                logger.info(
                    "Mejor candidato %s (%.6f sobre el mínimo)",
                    best.symbol, best.distance_from_low,
                )
                await self._handler(
                    Decision.buy(best.symbol, best.price, "Near 24h low")
                )
        except Exception as e:
            logger.error("Error ejecutando lote: %s", e, exc_info=True)
            state.reset_guards()
        finally:
            self._flushes += 1
            self._records.clear()
            self._timer = None

    def select_best(self) -> Optional[RangeRecord]:
        best: Optional[RangeRecord] = None
        for record in self._records.values():
            if not (record.within_lower_range and record.projected_below_high):
                continue
            if best is None or not best.distance_from_low < record.distance_from_low:
                best = record
        return best

    def discard_pending(self) -> None:
        if self._timer is not None and self._timer is not asyncio.current_task():
            self._timer.cancel()
        self._timer = None
        self._records.clear()

    def snapshot(self) -> dict:
        base = super().snapshot()
        base.update({
            "delay": self.delay,
            "armed": self.armed,
            "pending": len(self._records),
            "flushes": self._flushes,
        })
        return base
