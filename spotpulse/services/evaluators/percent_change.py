"""
SpotPulse – Percent-Change Evaluator
======================================
Rotación entre varios símbolos según su cambio porcentual de 24h.

  Cada ticker actualiza change[symbol] y price[symbol].

  SELL: la posición es de este símbolo y gain ≥ target_gain.
        gain = precio / precio de referencia      (gain_basis="reference")
        gain = bid simulado / precio de entrada   (gain_basis="bid_over_entry")
        Con posición de este símbolo NUNCA se evalúa compra.

  BUY:  sin posición ni compra en curso, y al menos `min_negative_count`
        símbolos en el pool. El pool son los símbolos con cambio negativo
        (require_negative=True) o todos los configurados (False).
        Se compra el símbolo del pool con el cambio más bajo que además
        cumpla cambio ≤ buy_percent. Sin candidato → HOLD.

La Decision de compra puede ser de un símbolo DISTINTO al del ticker
que disparó la evaluación; lleva su propio precio.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from spotpulse.domain.entities.decision import Decision
from spotpulse.domain.entities.position import Position
from spotpulse.domain.services.sizing import simulated_bid
from spotpulse.services.evaluators.base import (
    TRIGGER_TICKER,
    MarketSnapshot,
    SignalEvaluator,
)
from spotpulse.shared.logging.logger import get_logger
from spotpulse.state.engine_state import EngineState

logger = get_logger("evaluators.percent_change")

GAIN_REFERENCE = "reference"
GAIN_BID_OVER_ENTRY = "bid_over_entry"


class PercentChangeEvaluator(SignalEvaluator):
    name = "percent_change"
    trigger = TRIGGER_TICKER

    def __init__(
        self,
        symbols: Iterable[str],
        target_gain: float = 1.03,
        min_negative_count: int = 1,
        buy_percent: float = -0.005,
        require_negative: bool = True,
        gain_basis: str = GAIN_REFERENCE,
        spread_pct: float = 0.002,
    ) -> None:
        if gain_basis not in (GAIN_REFERENCE, GAIN_BID_OVER_ENTRY):
            raise ValueError(f"Unknown gain basis: {gain_basis}")
        self._symbols = list(symbols)
        self.target_gain = target_gain
        self.min_negative_count = min_negative_count
        self.buy_percent = buy_percent
        self.require_negative = require_negative
        self.gain_basis = gain_basis
        self.spread_pct = spread_pct

        self._changes: Dict[str, float] = {}
        self._prices: Dict[str, float] = {}

    def gain(self, price: float, position: Position) -> float:
        if self.gain_basis == GAIN_BID_OVER_ENTRY:
            return simulated_bid(price, self.spread_pct) / position.entry_price
        return price / position.reference_price

    def evaluate(self, snapshot: MarketSnapshot, state: EngineState) -> Decision:
        ticker = snapshot.ticker
        symbol = snapshot.symbol
        if ticker is None:
            return Decision.hold(symbol)

        self._changes[symbol] = ticker.change_pct
        self._prices[symbol] = ticker.last_price

        if state.holds(symbol):
            gain = self.gain(ticker.last_price, state.position)
            if gain >= self.target_gain:
                return Decision.sell(symbol, ticker.last_price, "Target reached")
            return Decision.hold(symbol)

        if state.has_position or state.buying:
            return Decision.hold(symbol)

        if self.require_negative:
            pool = [s for s in self._symbols if self._changes.get(s, 0.0) < 0]
        else:
            pool = list(self._symbols)
        if len(pool) < self.min_negative_count:
            return Decision.hold(symbol)

        target = self._pick(pool)
        if target is None:
            return Decision.hold(symbol)

        change = self._changes[target]
        logger.info("Candidato %s con cambio 24h %.2f%%", target, change)
        return Decision.buy(target, self._prices[target], f"24h change {change:.2f}%")

    def _pick(self, pool: list[str]) -> Optional[str]:
        target = None
        for candidate in pool:
            change = self._changes.get(candidate)
            if change is None or change > self.buy_percent:
                continue
            if target is None or change < self._changes[target]:
                target = candidate
        return target

    def reset(self) -> None:
        self._changes.clear()
        self._prices.clear()

    def snapshot(self) -> dict:
        base = super().snapshot()
        base.update({
            "symbols": list(self._symbols),
            "target_gain": self.target_gain,
            "buy_percent": self.buy_percent,
            "gain_basis": self.gain_basis,
            "changes": {s: round(c, 4) for s, c in self._changes.items()},
        })
        return base
