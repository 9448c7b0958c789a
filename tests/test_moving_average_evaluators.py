"""
Tests for spotpulse/services/evaluators/moving_average.py

Most scenarios use short=3, long=5, min_history=6 and no rounding so the
averages can be checked by hand. The shared price path:

    index   0..6   7    8    9   10   11
    price   30     20   20   5   21   22

- index 7:  short drops under long        → crossed_down
- index 8:  short(2) > short(1) > short(0) → falling
- index 11: short rising while long keeps falling, still below long
"""

import pytest

from spotpulse.domain.entities.decision import Action
from spotpulse.domain.entities.position import Position
from spotpulse.services.evaluators.base import MarketSnapshot
from spotpulse.services.evaluators.moving_average import (
    TREND_PER_TICK,
    CrossoverDivergenceEvaluator,
    CrossoverReversalEvaluator,
    CrossoverTrendEvaluator,
    FallingTargetEvaluator,
    RegressionDipEvaluator,
)
from spotpulse.state.engine_state import EngineState

SYMBOL = "ARUSDT"
PATH = [30.0] * 7 + [20.0, 20.0, 5.0, 21.0, 22.0]
SMALL = {"short_period": 3, "long_period": 5, "min_history": 6}


def snap(window, **kwargs):
    return MarketSnapshot(symbol=SYMBOL, price=window[-1], window=tuple(window), **kwargs)


def feed(evaluator, state, prices, **kwargs):
    """Evaluate every prefix of `prices`, like a growing tick window."""
    return [
        evaluator.evaluate(snap(prices[:i], **kwargs), state)
        for i in range(1, len(prices) + 1)
    ]


class TestComputeAndGate:

    def test_short_window_is_hold_and_leaves_memory_untouched(self):
        evaluator = CrossoverTrendEvaluator(scale=None, **SMALL)
        state = EngineState()

        decision = evaluator.evaluate(snap([30.0] * 6), state)

        assert decision.action == Action.HOLD
        assert SYMBOL not in state.signal_states

    def test_compute_offsets(self):
        evaluator = CrossoverTrendEvaluator(scale=None, **SMALL)

        ma = evaluator.compute(tuple(PATH[:12]))

        assert ma.short == 16.0
        assert ma.short_prev == pytest.approx(46 / 3)
        assert ma.short_old == 15.0
        assert ma.long == 17.6
        assert ma.long_prev == 19.2
        assert ma.long_old == 21.0

    def test_default_rounding_per_variant(self):
        window = tuple([2.0] * 22 + [2.004, 2.004, 2.004])

        assert CrossoverTrendEvaluator().compute(window).short == 2.01
        assert CrossoverDivergenceEvaluator().compute(window).short == 2.004

    def test_regression_dip_is_unrounded(self):
        window = tuple([2.0] * 22 + [2.004, 2.004, 2.004])

        assert RegressionDipEvaluator().compute(window).short == pytest.approx(2.004)


class TestCrossoverTrend:

    def test_buys_after_cross_down_then_rise(self):
        evaluator = CrossoverTrendEvaluator(scale=None, **SMALL)
        state = EngineState()

        decisions = feed(evaluator, state, PATH)

        assert [d.action for d in decisions[:11]] == [Action.HOLD] * 11
        assert decisions[11].action == Action.BUY
        assert decisions[11].reason == "Crossed down and rising"
        assert decisions[11].price == 22.0

    def test_cross_down_is_latched(self):
        evaluator = CrossoverTrendEvaluator(scale=None, **SMALL)
        state = EngineState()

        feed(evaluator, state, PATH[:8])
        assert state.signal_state(SYMBOL).crossed_down is True

        feed(evaluator, state, PATH[:11])
        assert state.signal_state(SYMBOL).crossed_down is True

    def test_latched_falling_sells_held_position(self):
        evaluator = CrossoverTrendEvaluator(scale=None, **SMALL)
        state = EngineState()
        feed(evaluator, state, PATH)

        state.position = Position(SYMBOL, 22.0, 1.0, 22.0)
        decision = evaluator.evaluate(snap(PATH + [23.0]), state)

        assert decision.action == Action.SELL
        assert decision.reason == "Price falling"

    def test_never_sells_a_different_symbol(self):
        evaluator = CrossoverTrendEvaluator(scale=None, **SMALL)
        state = EngineState(position=Position("SOLUSDT", 10.0, 1.0, 10.0))

        decisions = feed(evaluator, state, PATH)

        assert all(d.action == Action.HOLD for d in decisions)

    def test_stop_loss_band(self):
        evaluator = CrossoverTrendEvaluator(scale=None, stop_loss_pct=0.01, **SMALL)
        state = EngineState(position=Position(SYMBOL, 30.0, 1.0, 30.0))

        decision = evaluator.evaluate(snap([30.0] * 7 + [29.0]), state)

        assert decision.action == Action.SELL
        assert decision.reason == "Stop loss"


class TestCrossoverReversal:

    def test_buys_on_first_falling_tick(self):
        evaluator = CrossoverReversalEvaluator(scale=None, **SMALL)
        state = EngineState()

        decisions = feed(evaluator, state, PATH[:9])

        assert decisions[7].action == Action.HOLD
        assert decisions[8].action == Action.BUY
        assert decisions[8].reason == "Price falling"

    def test_sells_on_reversal_after_cross_down(self):
        evaluator = CrossoverReversalEvaluator(scale=None, **SMALL)
        state = EngineState(position=Position(SYMBOL, 30.0, 1.0, 30.0))

        decisions = feed(evaluator, state, PATH)

        assert [d.action for d in decisions[:11]] == [Action.HOLD] * 11
        assert decisions[11].action == Action.SELL
        assert decisions[11].reason == "Reversal"

    def test_trend_is_recomputed_every_tick(self):
        evaluator = CrossoverReversalEvaluator(scale=None, **SMALL)
        state = EngineState()

        feed(evaluator, state, PATH[:9])
        assert state.signal_state(SYMBOL).falling is True

        feed(evaluator, state, PATH[:11])
        assert evaluator.trend_memory == TREND_PER_TICK
        assert state.signal_state(SYMBOL).falling is False


class TestCrossoverDivergence:

    def test_buys_below_short_average_after_cross_down(self):
        evaluator = CrossoverDivergenceEvaluator(**SMALL)
        state = EngineState()

        decision = evaluator.evaluate(snap(PATH[:8], quote_balance=100.0), state)

        assert decision.action == Action.BUY
        assert decision.reason == "Below short average"

    def test_needs_quote_balance(self):
        evaluator = CrossoverDivergenceEvaluator(**SMALL)
        state = EngineState()

        decision = evaluator.evaluate(snap(PATH[:8], quote_balance=5.0), state)

        assert decision.action == Action.HOLD

    def test_sells_above_short_average_with_base_balance(self):
        evaluator = CrossoverDivergenceEvaluator(**SMALL)
        state = EngineState(position=Position(SYMBOL, 10.0, 6.0, 10.0))
        window = [10.0] * 6 + [12.0]

        assert evaluator.evaluate(snap(window, base_balance=6.0), state).action == Action.SELL
        assert evaluator.evaluate(snap(window, base_balance=3.0), state).action == Action.HOLD


class TestFallingTarget:

    def test_buys_when_price_fell(self):
        evaluator = FallingTargetEvaluator(scale=None, **SMALL)
        state = EngineState()

        decisions = feed(evaluator, state, PATH[:9])

        assert decisions[8].action == Action.BUY
        assert decisions[8].reason == "Price fell"

    def test_take_profit_exit_then_trend_cleared(self):
        evaluator = FallingTargetEvaluator(scale=None, **SMALL)
        state = EngineState()
        feed(evaluator, state, PATH[:9])

        state.position = Position(SYMBOL, 20.0, 1.0, 20.0)
        decision = evaluator.evaluate(snap(PATH[:9] + [20.2]), state)

        assert decision.action == Action.SELL
        assert decision.reason == "Target attained"

        evaluator.on_position_closed(SYMBOL, state)
        assert state.signal_state(SYMBOL).falling is False

    def test_falling_persists_until_exit(self):
        evaluator = FallingTargetEvaluator(scale=None, **SMALL)
        state = EngineState()

        feed(evaluator, state, PATH[:11])

        assert state.signal_state(SYMBOL).falling is True


class TestRegressionDip:

    def test_buys_confirmed_dip(self):
        evaluator = RegressionDipEvaluator(**SMALL)
        state = EngineState()

        decision = evaluator.evaluate(snap([30.0] * 7 + [20.0]), state)

        assert decision.action == Action.BUY
        assert decision.reason == "Dip below long average"

    def test_flat_market_holds(self):
        evaluator = RegressionDipEvaluator(**SMALL)
        state = EngineState()

        decision = evaluator.evaluate(snap([30.0] * 8), state)

        assert decision.action == Action.HOLD

    def test_take_profit_exit(self):
        evaluator = RegressionDipEvaluator(**SMALL)
        state = EngineState(position=Position(SYMBOL, 20.0, 1.0, 20.0))

        decision = evaluator.evaluate(snap([20.0] * 7 + [20.2]), state)

        assert decision.action == Action.SELL
        assert decision.reason == "Target reached"
