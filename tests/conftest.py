"""
Shared test fixtures for SpotPulse tests.

Provides reusable fixtures for:
- Fresh engine state
- In-memory exchange metadata and outcome publisher
- Position ledger wired to both
"""

import asyncio

import pytest

from spotpulse.application.ports.exchange_metadata import IExchangeMetadata
from spotpulse.application.ports.notifier import IOutcomePublisher
from spotpulse.services.position_ledger import PositionLedger
from spotpulse.state.engine_state import EngineState


class StaticMetadata(IExchangeMetadata):
    """Step sizes from a dict; counts lookups."""

    def __init__(self, steps=None, delay: float = 0.0):
        self.steps = dict(steps or {"ARUSDT": 0.001})
        self.delay = delay
        self.calls = 0

    async def get_step_size(self, symbol):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.steps[symbol]


class RecordingPublisher(IOutcomePublisher):
    """Collects published outcome events in order."""

    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)

    def of_type(self, cls):
        return [e for e in self.events if isinstance(e, cls)]


@pytest.fixture
def engine_state():
    return EngineState()


@pytest.fixture
def metadata():
    return StaticMetadata()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def ledger(engine_state, metadata, publisher):
    return PositionLedger(
        engine_state,
        metadata,
        publisher,
        quote_asset="USDT",
        initial_quote_balance=100.0,
        budget=30.0,
        spread_pct=0.002,
    )
