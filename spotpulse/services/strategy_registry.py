"""Registro de estrategias: nombre → evaluador + streams + política de ventana."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from spotpulse.domain.exceptions.domain_errors import ConfigurationError
from spotpulse.services.evaluators.base import SignalEvaluator
from spotpulse.services.evaluators.candle_trend import CandleTrendEvaluator
from spotpulse.services.evaluators.debounced_range import DebouncedRangeEvaluator
from spotpulse.services.evaluators.moving_average import (
    CrossoverDivergenceEvaluator,
    CrossoverReversalEvaluator,
    CrossoverTrendEvaluator,
    FallingTargetEvaluator,
    RegressionDipEvaluator,
)
from spotpulse.services.evaluators.percent_change import PercentChangeEvaluator
from spotpulse.services.window_aggregator import WindowPolicy
from spotpulse.shared.config.settings import Settings

STREAM_TRADE = "trade"
STREAM_KLINE = "kline"
STREAM_MINI_TICKER = "miniTicker"
STREAM_TICKER = "ticker"

EvaluatorFactory = Callable[[Settings], SignalEvaluator]


@dataclass(frozen=True)
class StrategySpec:
    name: str
    factory: EvaluatorFactory
    window_policy: WindowPolicy
    streams: tuple[str, ...]
    default_interval: str = "3m"
    candle_history: int = 8

    def build(self, settings: Settings) -> SignalEvaluator:
        return self.factory(settings)


_REGISTRY: Dict[str, StrategySpec] = {}


def register_strategy(spec: StrategySpec) -> None:
    _REGISTRY[spec.name] = spec


def get_strategy(name: str) -> StrategySpec:
    if name not in _REGISTRY:
        raise ConfigurationError(f"Unknown strategy: {name}", field="strategy")
    return _REGISTRY[name]


def available_strategies() -> list[str]:
    return sorted(_REGISTRY)


def build_evaluator(settings: Settings) -> tuple[StrategySpec, SignalEvaluator]:
    """Resolver la estrategia configurada y construir su evaluador."""
    spec = get_strategy(settings.strategy)
    return spec, spec.build(settings)


def _ma_kwargs(settings: Settings) -> dict:
    kwargs = {
        "short_period": settings.short_period,
        "long_period": settings.long_period,
        "min_history": settings.min_history,
    }
    if settings.take_profit_pct is not None:
        kwargs["take_profit_pct"] = settings.take_profit_pct
    if settings.stop_loss_pct is not None:
        kwargs["stop_loss_pct"] = settings.stop_loss_pct
    return kwargs


# ─── Registro por defecto ───────────────────────────────────────────────

register_strategy(StrategySpec(
    name="crossover_trend",
    factory=lambda s: CrossoverTrendEvaluator(**_ma_kwargs(s)),
    window_policy=WindowPolicy.CANDLE,
    streams=(STREAM_TRADE, STREAM_KLINE),
))
register_strategy(StrategySpec(
    name="crossover_reversal",
    factory=lambda s: CrossoverReversalEvaluator(**_ma_kwargs(s)),
    window_policy=WindowPolicy.MERGED,
    streams=(STREAM_TRADE, STREAM_KLINE),
))
register_strategy(StrategySpec(
    name="crossover_divergence",
    factory=lambda s: CrossoverDivergenceEvaluator(
        price_offset=s.divergence_offset,
        min_quote_balance=s.divergence_min_quote,
        min_base_balance=s.divergence_min_base,
        **_ma_kwargs(s),
    ),
    window_policy=WindowPolicy.TICK,
    streams=(STREAM_TRADE,),
))
register_strategy(StrategySpec(
    name="falling_target",
    factory=lambda s: FallingTargetEvaluator(**_ma_kwargs(s)),
    window_policy=WindowPolicy.TICK,
    streams=(STREAM_TRADE,),
))
register_strategy(StrategySpec(
    name="regression_dip",
    factory=lambda s: RegressionDipEvaluator(min_drop=s.dip_min_drop, **_ma_kwargs(s)),
    window_policy=WindowPolicy.HYBRID,
    streams=(STREAM_TRADE, STREAM_KLINE),
))
register_strategy(StrategySpec(
    name="percent_change",
    factory=lambda s: PercentChangeEvaluator(
        s.symbols,
        target_gain=s.target_gain,
        min_negative_count=s.min_negative_count,
        buy_percent=s.buy_percent,
        require_negative=s.require_negative,
        gain_basis=s.gain_basis,
        spread_pct=s.spread_pct,
    ),
    window_policy=WindowPolicy.TICK,
    streams=(STREAM_MINI_TICKER,),
))
register_strategy(StrategySpec(
    name="debounced_range",
    factory=lambda s: DebouncedRangeEvaluator(
        delay=s.debounce_delay,
        lower_range_fraction=s.lower_range_fraction,
        projected_gain=s.projected_gain,
        target_gain=s.target_gain,
        spread_pct=s.spread_pct,
    ),
    window_policy=WindowPolicy.TICK,
    streams=(STREAM_TICKER,),
))
register_strategy(StrategySpec(
    name="candle_trend",
    factory=lambda s: CandleTrendEvaluator(),
    window_policy=WindowPolicy.CANDLE,
    streams=(STREAM_KLINE,),
    default_interval="15m",
))
