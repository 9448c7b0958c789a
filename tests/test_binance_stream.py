"""Tests for spotpulse/infrastructure/binance_stream.py"""

import asyncio
import json
from unittest.mock import patch

import pytest

from spotpulse.domain.entities.candle import Candle
from spotpulse.domain.exceptions.domain_errors import MalformedPayloadError
from spotpulse.domain.value_objects.market_updates import FeedStatus, TickerUpdate
from spotpulse.domain.value_objects.tick import Tick
from spotpulse.infrastructure.binance_stream import (
    BinanceStreamClient,
    build_stream_url,
    parse_stream_message,
)
from spotpulse.infrastructure.event_bus import FEED_TOPIC, EventBus


def trade(price, symbol="ARUSDT", ts=1_700_000_000_000):
    return json.dumps({
        "stream": f"{symbol.lower()}@trade",
        "data": {"e": "trade", "s": symbol, "p": str(price), "q": "1.0", "T": ts},
    })


class FakeConnection:
    """Async context manager + async iterator standing in for a websocket."""

    def __init__(self, messages):
        self._messages = list(messages)
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self._messages:
            yield message

    async def close(self):
        self.closed = True


class TestBuildStreamUrl:

    def test_combined_stream_names(self):
        url = build_stream_url(
            "wss://stream.binance.com:9443", ["ARUSDT"], ["trade", "kline"], "3m",
        )

        assert url == "wss://stream.binance.com:9443/stream?streams=arusdt@trade/arusdt@kline_3m"

    def test_multiple_symbols(self):
        url = build_stream_url("wss://host/", ["ARUSDT", "SOLUSDT"], ["miniTicker"])

        assert url == "wss://host/stream?streams=arusdt@miniTicker/solusdt@miniTicker"


class TestParseStreamMessage:

    def test_trade(self):
        event = parse_stream_message(trade("5.123"))

        assert event == Tick("ARUSDT", 5.123, 1_700_000_000.0)

    def test_kline(self):
        raw = json.dumps({"data": {
            "e": "kline", "s": "ARUSDT",
            "k": {"s": "ARUSDT", "t": 1_700_000_000_000, "o": "5.0", "h": "5.5",
                  "l": "4.9", "c": "5.2", "x": True},
        }})

        event = parse_stream_message(raw)

        assert isinstance(event, Candle)
        assert event.open_time == 1_700_000_000.0
        assert event.close == 5.2
        assert event.is_final is True

    def test_mini_ticker_without_wrapper(self):
        raw = json.dumps({
            "e": "24hrMiniTicker", "E": 1_700_000_000_000, "s": "ARUSDT",
            "c": "99.0", "o": "100.0", "h": "101.0", "l": "98.0",
        })

        event = parse_stream_message(raw)

        assert isinstance(event, TickerUpdate)
        assert event.last_price == 99.0
        assert event.change_pct == pytest.approx(-1.0)

    def test_unknown_event_type_is_ignored(self):
        assert parse_stream_message(json.dumps({"data": {"e": "depthUpdate"}})) is None

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2, 3]",
        json.dumps({"data": "oops"}),
        json.dumps({"data": {"e": "trade", "s": "ARUSDT", "T": 1}}),
        json.dumps({"data": {"e": "trade", "s": "ARUSDT", "p": "abc", "T": 1}}),
    ])
    def test_malformed_payloads_raise(self, raw):
        with pytest.raises(MalformedPayloadError):
            parse_stream_message(raw)


class TestStream:

    @pytest.mark.asyncio
    async def test_reconnects_and_drops_malformed_messages(self):
        connections = [
            FakeConnection([trade("5.1"), "garbage"]),
            FakeConnection([trade("5.2")]),
        ]
        client = BinanceStreamClient(
            EventBus(), ["ARUSDT"], ["trade"], reconnect_delay=0,
        )

        with patch(
            "spotpulse.infrastructure.binance_stream.websockets.connect",
            side_effect=connections,
        ) as mock_connect:
            stream = client.stream()
            events = [await stream.__anext__() for _ in range(5)]
            await stream.aclose()

        assert events[0] == FeedStatus(connected=True, reason="connected")
        assert events[1].price == 5.1
        assert events[2].connected is False
        assert events[3].connected is True
        assert events[4].price == 5.2
        assert mock_connect.call_count == 2
        assert client.stats["malformed_dropped"] == 1
        assert client.stats["reconnects"] == 1
        assert client.stats["events_received"] == 2

    @pytest.mark.asyncio
    async def test_connection_error_yields_disconnect(self):
        client = BinanceStreamClient(EventBus(), ["ARUSDT"], ["trade"], reconnect_delay=0)

        with patch(
            "spotpulse.infrastructure.binance_stream.websockets.connect",
            side_effect=OSError("refused"),
        ):
            stream = client.stream()
            status = await stream.__anext__()
            await stream.aclose()

        assert status.connected is False
        assert "refused" in status.reason

    @pytest.mark.asyncio
    async def test_pump_publishes_to_feed_topic(self):
        bus = EventBus()
        queue = await bus.subscribe(FEED_TOPIC, "test")
        client = BinanceStreamClient(bus, ["ARUSDT"], ["trade"], reconnect_delay=10)

        with patch(
            "spotpulse.infrastructure.binance_stream.websockets.connect",
            side_effect=[FakeConnection([trade("5.1")])],
        ):
            await client.start()
            received = [await asyncio.wait_for(queue.get(), timeout=1) for _ in range(3)]
            await client.stop()

        assert received[0].connected is True
        assert isinstance(received[1], Tick)
        assert received[2].connected is False
        assert client.stats["running"] is False
