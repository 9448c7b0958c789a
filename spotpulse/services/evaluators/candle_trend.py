"""
SpotPulse – Candle Trend Evaluator (solo alertas)
===================================================
Analiza la forma de las últimas velas cerradas y emite ALERT; nunca
ejecuta órdenes.

  body_mid  = (open + close) / 2
  range_mid = (high + low) / 2

  Para cada vela anterior a la última, su tendencia es la dirección
  hacia la vela siguiente (U / D / E), tanto de body_mid como de range_mid.

  Condición (con ≥ min_candles velas):
    #D(range_mid) ≥ #U(range_mid)
    ∧ última tendencia de range_mid = U
    ∧ #D(body_mid) ≥ #U(body_mid)
    ∧ color de la última vela ∈ {G, E}
"""

from __future__ import annotations

from spotpulse.domain.entities.decision import Decision
from spotpulse.domain.services.indicator_calculator import IndicatorCalculator
from spotpulse.services.evaluators.base import (
    TRIGGER_CANDLE,
    MarketSnapshot,
    SignalEvaluator,
)
from spotpulse.state.engine_state import EngineState


class CandleTrendEvaluator(SignalEvaluator):
    name = "candle_trend"
    trigger = TRIGGER_CANDLE

    def __init__(self, min_candles: int = 7) -> None:
        self.min_candles = min_candles

    @staticmethod
    def trends(values: list[float]) -> list[str]:
        return [IndicatorCalculator.trend(a, b) for a, b in zip(values, values[1:])]

    def evaluate(self, snapshot: MarketSnapshot, state: EngineState) -> Decision:
        candles = snapshot.candles
        if not snapshot.new_candle or len(candles) < self.min_candles:
            return Decision.hold(snapshot.symbol)

        body = self.trends([c.body_mid for c in candles])
        rng = self.trends([c.range_mid for c in candles])
        latest = candles[-1]

        condition = (
            rng.count("D") >= rng.count("U")
            and rng[-1] == "U"
            and body.count("D") >= body.count("U")
            and latest.color in ("G", "E")
        )
        if not condition:
            return Decision.hold(snapshot.symbol)

        return Decision.alert(
            snapshot.symbol,
            latest.close,
            f"Buy now between {latest.close} -> {latest.high}",
        )
