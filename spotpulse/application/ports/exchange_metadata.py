"""
SpotPulse – Port: Exchange Metadata
=====================================
Contrato para obtener el step size (LOT_SIZE) de un símbolo.

Las implementaciones cachean el valor durante toda la vida del proceso:
el step size de un par no cambia mientras el motor corre.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable


class IExchangeMetadata(ABC):

    @abstractmethod
    async def get_step_size(self, symbol: str) -> float:
        """Step size del símbolo. Lanza ExchangeMetadataError si no se puede obtener."""
        ...

    async def prefetch(self, symbols: Iterable[str]) -> None:
        """Resolver (y cachear) todos los símbolos antes de empezar a operar."""
        for symbol in symbols:
            await self.get_step_size(symbol)
