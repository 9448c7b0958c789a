"""
SpotPulse – Position Ledger (Execution Simulator)
===================================================
Saldos simulados y la ÚNICA posición abierta.

═══════════════════════════════════════════════════════════════
            FLUJO DE EJECUCIÓN
═══════════════════════════════════════════════════════════════

    execute_buy(symbol, price)
        │
        ├── ¿posición abierta o compra en curso? → None (silencioso)
        │
        ▼
    buying = True ──────────────────────────── (finally: buying = False)
        │
    ask      = price × (1 + spread/2)
    spend    = min(budget, saldo quote)
    quantity = floor(spend / ask) a la precisión del step size
        │
        ├── quantity < step → BuySkipped (sin cambio de estado)
        │
        └── quote −= ask × qty, base += qty → Position → BuyExecuted

    execute_sell(symbol, price, reason)
        │
        ├── ¿sin posición, otro símbolo, o venta en curso? → None
        │
        ▼
    selling = True ─────────────────────────── (finally: selling = False)
        │
    bid = price × (1 − spread/2)
    quote += bid × qty, base −= qty → Position destruida → SellExecuted

CADA compra ejecutada, venta ejecutada y compra descartada publica
EXACTAMENTE un evento de outcome.
"""

from __future__ import annotations

from typing import Dict, Optional

from spotpulse.application.ports.exchange_metadata import IExchangeMetadata
from spotpulse.application.ports.notifier import IOutcomePublisher
from spotpulse.domain.entities.position import Position
from spotpulse.domain.events.domain_events import (
    BuyExecuted,
    BuySkipped,
    SellExecuted,
)
from spotpulse.domain.services.sizing import (
    base_asset_of,
    floor_to_step,
    simulated_ask,
    simulated_bid,
)
from spotpulse.shared.logging.logger import get_logger
from spotpulse.state.engine_state import EngineState

logger = get_logger("position_ledger")


class PositionLedger:
    """
    Ejecutor simulado de compras/ventas spot.

    Comparte el EngineState con el pipeline: las guardas `buying` /
    `selling` y la posición viven allí para que el evaluador las vea.
    """

    def __init__(
        self,
        state: EngineState,
        metadata: IExchangeMetadata,
        publisher: IOutcomePublisher,
        quote_asset: str = "USDT",
        initial_quote_balance: float = 100.0,
        budget: Optional[float] = 30.0,
        spread_pct: float = 0.002,
    ) -> None:
        self._state = state
        self._metadata = metadata
        self._publisher = publisher
        self._quote_asset = quote_asset
        self._budget = budget
        self._spread_pct = spread_pct

        self._balances: Dict[str, float] = {quote_asset: initial_quote_balance}
        self._stats = _LedgerStats()

    # ════════════════════════════════════════════════════════════════
    #  CONSULTAS
    # ════════════════════════════════════════════════════════════════

    @property
    def position(self) -> Optional[Position]:
        return self._state.position

    @property
    def quote_asset(self) -> str:
        return self._quote_asset

    @property
    def quote_balance(self) -> float:
        return self._balances.get(self._quote_asset, 0.0)

    def balance(self, asset: str) -> float:
        return self._balances.get(asset, 0.0)

    def base_balance(self, symbol: str) -> float:
        return self.balance(base_asset_of(symbol, self._quote_asset))

    @property
    def balances(self) -> Dict[str, float]:
        return dict(self._balances)

    # ════════════════════════════════════════════════════════════════
    #  COMPRA
    # ════════════════════════════════════════════════════════════════

    async def execute_buy(self, symbol: str, reference_price: float) -> Optional[Position]:
        """
        Simular una compra al ask.

        Returns:
            La Position creada, o None si se rechazó o se descartó.
        """
        state = self._state
        if state.position is not None or state.buying:
            logger.debug(
                "🚫 Compra ignorada para %s (posición=%s, buying=%s)",
                symbol, state.position is not None, state.buying,
            )
            self._stats.buys_ignored += 1
            return None

        state.buying = True
        try:
            ask = simulated_ask(reference_price, self._spread_pct)
            available = self.quote_balance
            spend = available if self._budget is None else min(self._budget, available)

            step = await self._metadata.get_step_size(symbol)
            quantity = floor_to_step(spend / ask, step) if spend > 0 else 0.0

            if quantity < step:
                self._stats.buys_skipped += 1
                logger.info(
                    "❌ Compra descartada %s: qty=%.8f < step=%s (spend=%.2f ask=%.6f)",
                    symbol, quantity, step, spend, ask,
                )
                await self._publisher.publish(BuySkipped(
                    symbol=symbol,
                    price=reference_price,
                    budget=spend,
                ))
                return None

            base_asset = base_asset_of(symbol, self._quote_asset)
            self._balances[self._quote_asset] = available - ask * quantity
            self._balances[base_asset] = self.balance(base_asset) + quantity

            position = Position(
                symbol=symbol,
                entry_price=ask,
                quantity=quantity,
                reference_price=reference_price,
            )
            state.position = position
            self._stats.buys += 1

            logger.info(
                "🟠 Compra %s qty=%s ask=%.6f | %s=%.2f",
                symbol, quantity, ask, self._quote_asset, self.quote_balance,
            )
            await self._publisher.publish(BuyExecuted(
                symbol=symbol,
                base_asset=base_asset,
                quantity=quantity,
                price=ask,
                quote_asset=self._quote_asset,
                quote_balance=self.quote_balance,
            ))
            return position
        finally:
            state.buying = False

    # ════════════════════════════════════════════════════════════════
    #  VENTA
    # ════════════════════════════════════════════════════════════════

    async def execute_sell(
        self,
        symbol: str,
        reference_price: float,
        reason: str,
    ) -> Optional[SellExecuted]:
        """
        Simular la venta completa de la posición al bid.

        Returns:
            El evento SellExecuted, o None si se rechazó.
        """
        state = self._state
        position = state.position
        if position is None or position.symbol != symbol or state.selling:
            logger.debug("🚫 Venta ignorada para %s", symbol)
            self._stats.sells_ignored += 1
            return None

        state.selling = True
        try:
            bid = simulated_bid(reference_price, self._spread_pct)
            proceeds = bid * position.quantity
            base_asset = base_asset_of(symbol, self._quote_asset)

            self._balances[self._quote_asset] = self.quote_balance + proceeds
            self._balances[base_asset] = self.balance(base_asset) - position.quantity
            state.position = None

            pnl = proceeds - position.cost
            self._stats.record_sell(pnl)

            logger.info(
                "🟢 Venta %s qty=%s bid=%.6f pnl=%+.4f (%s) | %s=%.2f",
                symbol, position.quantity, bid, pnl, reason,
                self._quote_asset, self.quote_balance,
            )
            event = SellExecuted(
                symbol=symbol,
                base_asset=base_asset,
                quantity=position.quantity,
                price=bid,
                proceeds=proceeds,
                pnl=pnl,
                reason=reason,
                quote_asset=self._quote_asset,
                quote_balance=self.quote_balance,
            )
            await self._publisher.publish(event)
            return event
        finally:
            state.selling = False

    def snapshot(self) -> dict:
        position = self._state.position
        return {
            "balances": {a: round(b, 8) for a, b in self._balances.items()},
            "position": position.to_dict() if position else None,
            "budget": self._budget,
            "spread_pct": self._spread_pct,
            **self._stats.to_dict(),
        }


class _LedgerStats:
    """Contadores internos del ledger (no persistidos)."""

    __slots__ = (
        "buys", "sells", "buys_skipped", "buys_ignored",
        "sells_ignored", "wins", "realized_pnl",
    )

    def __init__(self) -> None:
        self.buys: int = 0
        self.sells: int = 0
        self.buys_skipped: int = 0
        self.buys_ignored: int = 0
        self.sells_ignored: int = 0
        self.wins: int = 0
        self.realized_pnl: float = 0.0

    def record_sell(self, pnl: float) -> None:
        self.sells += 1
        self.realized_pnl += pnl
        if pnl > 0:
            self.wins += 1

    def to_dict(self) -> dict:
        return {
            "buys": self.buys,
            "sells": self.sells,
            "buys_skipped": self.buys_skipped,
            "buys_ignored": self.buys_ignored,
            "sells_ignored": self.sells_ignored,
            "wins": self.wins,
            "realized_pnl": round(self.realized_pnl, 8),
        }
