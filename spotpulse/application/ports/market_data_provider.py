"""
SpotPulse – Port: Market Data Provider
========================================
Fuente de eventos de mercado: Tick, Candle, TickerUpdate y FeedStatus.

`stream()` es un generador asíncrono perezoso y sin fin: se reconecta
solo y anuncia cada conexión/desconexión con un FeedStatus.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Union

from spotpulse.domain.entities.candle import Candle
from spotpulse.domain.value_objects.market_updates import FeedStatus, TickerUpdate
from spotpulse.domain.value_objects.tick import Tick

FeedEvent = Union[Tick, Candle, TickerUpdate, FeedStatus]


class IMarketDataProvider(ABC):

    @abstractmethod
    def stream(self) -> AsyncIterator[FeedEvent]:
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @property
    @abstractmethod
    def stats(self) -> dict:
        ...
