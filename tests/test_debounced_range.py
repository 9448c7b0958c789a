"""Tests for spotpulse/services/evaluators/debounced_range.py"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from spotpulse.domain.entities.decision import Action, Decision
from spotpulse.domain.entities.position import Position
from spotpulse.domain.value_objects.market_updates import TickerUpdate
from spotpulse.services.evaluators.base import MarketSnapshot
from spotpulse.services.evaluators.debounced_range import DebouncedRangeEvaluator
from spotpulse.state.engine_state import EngineState


def ticker_snapshot(symbol, last, high, low):
    ticker = TickerUpdate(symbol, last, open_price=low, high=high, low=low)
    return MarketSnapshot(symbol=symbol, price=last, ticker=ticker)


class TestRecords:

    def test_record_flags(self):
        evaluator = DebouncedRangeEvaluator()

        record = evaluator.record_for(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0))

        assert record.within_lower_range is True
        assert record.projected_below_high is True
        assert record.distance_from_low == pytest.approx(0.1)

    def test_price_above_lower_band_is_not_a_candidate(self):
        evaluator = DebouncedRangeEvaluator()

        record = evaluator.record_for(ticker_snapshot("ETHUSDT", 30.0, high=30.2, low=29.0))

        assert record.within_lower_range is False


class TestBatchTimer:

    @pytest.mark.asyncio
    async def test_fires_once_with_best_candidate(self):
        """Closest to its 24h low wins after the delay."""
        evaluator = DebouncedRangeEvaluator(delay=0.01)
        handler = AsyncMock()
        evaluator.bind(handler)
        state = EngineState()

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0), state)
        evaluator.evaluate(ticker_snapshot("SOLUSDT", 20.5, high=25.0, low=20.0), state)
        evaluator.evaluate(ticker_snapshot("ETHUSDT", 30.0, high=30.2, low=29.0), state)
        assert evaluator.armed

        await asyncio.sleep(0.05)

        handler.assert_awaited_once_with(Decision.buy("ARUSDT", 10.1, "Near 24h low"))
        assert not evaluator.armed
        assert evaluator.pending == {}

    @pytest.mark.asyncio
    async def test_tie_goes_to_latest_record(self):
        evaluator = DebouncedRangeEvaluator(delay=10)
        state = EngineState()

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.5, high=13.0, low=10.0), state)
        evaluator.evaluate(ticker_snapshot("SOLUSDT", 20.5, high=25.0, low=20.0), state)

        assert evaluator.select_best().symbol == "SOLUSDT"
        evaluator.discard_pending()
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_newer_ticker_replaces_record(self):
        evaluator = DebouncedRangeEvaluator(delay=10)
        state = EngineState()

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0), state)
        evaluator.evaluate(ticker_snapshot("ARUSDT", 11.9, high=12.0, low=10.0), state)

        assert evaluator.pending["ARUSDT"].price == 11.9
        assert evaluator.select_best() is None
        evaluator.discard_pending()
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_not_armed_while_position_open(self):
        evaluator = DebouncedRangeEvaluator(delay=0.01)
        state = EngineState(position=Position("SOLUSDT", 20.0, 1.0, 20.0))

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0), state)

        assert not evaluator.armed

    @pytest.mark.asyncio
    async def test_no_buy_if_position_opened_during_delay(self):
        evaluator = DebouncedRangeEvaluator(delay=0.01)
        handler = AsyncMock()
        evaluator.bind(handler)
        state = EngineState()

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0), state)
        state.position = Position("SOLUSDT", 20.0, 1.0, 20.0)
        await asyncio.sleep(0.05)

        handler.assert_not_awaited()
        assert evaluator.pending == {}

    @pytest.mark.asyncio
    async def test_handler_failure_clears_batch_and_guards(self):
        evaluator = DebouncedRangeEvaluator(delay=0.01)
        evaluator.bind(AsyncMock(side_effect=RuntimeError("ledger down")))
        state = EngineState()

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0), state)
        await asyncio.sleep(0.05)

        assert not evaluator.armed
        assert evaluator.pending == {}
        assert not state.buying

    @pytest.mark.asyncio
    async def test_discard_pending_cancels_timer(self):
        evaluator = DebouncedRangeEvaluator(delay=0.01)
        handler = AsyncMock()
        evaluator.bind(handler)
        state = EngineState()

        evaluator.evaluate(ticker_snapshot("ARUSDT", 10.1, high=12.0, low=10.0), state)
        evaluator.discard_pending()
        await asyncio.sleep(0.05)

        handler.assert_not_awaited()
        assert not evaluator.armed


class TestExit:

    @pytest.mark.asyncio
    async def test_sells_when_bid_reaches_target(self):
        evaluator = DebouncedRangeEvaluator(target_gain=1.02)
        state = EngineState(position=Position("ARUSDT", 10.0, 1.0, 10.0))

        decision = evaluator.evaluate(ticker_snapshot("ARUSDT", 10.25, high=11.0, low=9.0), state)

        assert decision.action == Action.SELL
        assert decision.reason == "Target reached"

    @pytest.mark.asyncio
    async def test_no_sell_while_sell_in_flight(self):
        evaluator = DebouncedRangeEvaluator(target_gain=1.02)
        state = EngineState(position=Position("ARUSDT", 10.0, 1.0, 10.0), selling=True)

        decision = evaluator.evaluate(ticker_snapshot("ARUSDT", 10.25, high=11.0, low=9.0), state)

        assert decision.action == Action.HOLD
