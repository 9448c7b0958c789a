from spotpulse.services.evaluators.base import MarketSnapshot, SignalEvaluator
from spotpulse.services.evaluators.candle_trend import CandleTrendEvaluator
from spotpulse.services.evaluators.debounced_range import DebouncedRangeEvaluator
from spotpulse.services.evaluators.moving_average import (
    CrossoverDivergenceEvaluator,
    CrossoverReversalEvaluator,
    CrossoverTrendEvaluator,
    FallingTargetEvaluator,
    MovingAverageEvaluator,
    RegressionDipEvaluator,
)
from spotpulse.services.evaluators.percent_change import PercentChangeEvaluator

__all__ = [
    "MarketSnapshot",
    "SignalEvaluator",
    "MovingAverageEvaluator",
    "CrossoverTrendEvaluator",
    "CrossoverReversalEvaluator",
    "CrossoverDivergenceEvaluator",
    "FallingTargetEvaluator",
    "RegressionDipEvaluator",
    "PercentChangeEvaluator",
    "DebouncedRangeEvaluator",
    "CandleTrendEvaluator",
]
