"""Tests for spotpulse/services/strategy_registry.py"""

import pytest

from spotpulse.domain.exceptions.domain_errors import ConfigurationError
from spotpulse.services.evaluators import (
    CandleTrendEvaluator,
    CrossoverDivergenceEvaluator,
    FallingTargetEvaluator,
    PercentChangeEvaluator,
    RegressionDipEvaluator,
)
from spotpulse.services.strategy_registry import (
    STREAM_KLINE,
    STREAM_MINI_TICKER,
    available_strategies,
    build_evaluator,
    get_strategy,
)
from spotpulse.services.window_aggregator import WindowPolicy
from spotpulse.shared.config.settings import Settings


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestRegistry:

    def test_all_variants_registered(self):
        assert available_strategies() == [
            "candle_trend",
            "crossover_divergence",
            "crossover_reversal",
            "crossover_trend",
            "debounced_range",
            "falling_target",
            "percent_change",
            "regression_dip",
        ]

    def test_unknown_strategy_is_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            get_strategy("martingale")

        assert exc_info.value.field == "strategy"
        assert exc_info.value.to_dict()["error"] == "CONFIGURATION"

    @pytest.mark.parametrize("name", [
        "candle_trend", "crossover_divergence", "crossover_reversal", "crossover_trend",
        "debounced_range", "falling_target", "percent_change", "regression_dip",
    ])
    def test_every_strategy_builds(self, name):
        spec, evaluator = build_evaluator(make_settings(strategy=name))

        assert spec.name == name
        assert evaluator.name == name

    def test_streams_and_policy(self):
        assert get_strategy("percent_change").streams == (STREAM_MINI_TICKER,)
        assert get_strategy("crossover_trend").window_policy == WindowPolicy.CANDLE
        assert get_strategy("crossover_reversal").window_policy == WindowPolicy.MERGED
        candle = get_strategy("candle_trend")
        assert candle.streams == (STREAM_KLINE,)
        assert candle.default_interval == "15m"


class TestFactories:

    def test_falling_target_keeps_its_default_band(self):
        _, evaluator = build_evaluator(make_settings(strategy="falling_target"))

        assert isinstance(evaluator, FallingTargetEvaluator)
        assert evaluator.take_profit_pct == 0.005

    def test_band_override_from_settings(self):
        _, evaluator = build_evaluator(
            make_settings(strategy="falling_target", take_profit_pct=0.01),
        )

        assert evaluator.take_profit_pct == 0.01

    def test_percent_change_receives_symbols(self):
        _, evaluator = build_evaluator(make_settings(
            strategy="percent_change", symbols=["arusdt", "solusdt"], target_gain=1.05,
        ))

        assert isinstance(evaluator, PercentChangeEvaluator)
        assert evaluator.snapshot()["symbols"] == ["ARUSDT", "SOLUSDT"]
        assert evaluator.target_gain == 1.05

    def test_divergence_thresholds_from_settings(self):
        _, evaluator = build_evaluator(make_settings(
            strategy="crossover_divergence",
            divergence_offset=0.05,
            divergence_min_quote=20.0,
            divergence_min_base=1.0,
        ))

        assert isinstance(evaluator, CrossoverDivergenceEvaluator)
        assert evaluator.price_offset == 0.05
        assert evaluator.min_quote_balance == 20.0
        assert evaluator.min_base_balance == 1.0

    def test_divergence_defaults(self):
        _, evaluator = build_evaluator(make_settings(strategy="crossover_divergence"))

        assert evaluator.price_offset == 0.015
        assert evaluator.min_quote_balance == 10.0
        assert evaluator.min_base_balance == 5.0

    def test_dip_min_drop_from_settings(self, monkeypatch):
        monkeypatch.setenv("DIP_MIN_DROP", "0.02")
        _, evaluator = build_evaluator(make_settings(strategy="regression_dip"))

        assert isinstance(evaluator, RegressionDipEvaluator)
        assert evaluator.min_drop == 0.02

    def test_candle_trend_has_no_parameters(self):
        _, evaluator = build_evaluator(make_settings(strategy="candle_trend"))

        assert isinstance(evaluator, CandleTrendEvaluator)
