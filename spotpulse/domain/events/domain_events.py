"""
SpotPulse – Domain Events (Outcomes)
======================================
Hechos que el motor comunica al Notifier Port.

Cada evento es inmutable, lleva timestamp y sabe renderizarse como un
mensaje corto legible por humanos (`to_message`). El motor NUNCA espera a
que el mensaje se entregue: publica el evento y sigue.

REGLA DE NEGOCIO:
  Cada BUY ejecutado, SELL ejecutado y BUY descartado por presupuesto
  produce EXACTAMENTE un evento → exactamente una notificación.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent:
    """Evento base de dominio."""

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.__class__.__name__,
            "timestamp": self.timestamp,
        }

    def to_message(self, label: str = "") -> str:
        raise NotImplementedError


def _prefix(label: str) -> str:
    return f"{label}: " if label else ""


@dataclass(frozen=True)
class EngineStarted(DomainEvent):
    """Evento: el motor arrancó y está vigilando precios."""

    strategy: str = ""
    symbols: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({"strategy": self.strategy, "symbols": list(self.symbols)})
        return base

    def to_message(self, label: str = "") -> str:
        return (
            f"🚀 {_prefix(label)}started ({self.strategy}) "
            f"and is watching {', '.join(self.symbols)}..."
        )


@dataclass(frozen=True)
class BuyExecuted(DomainEvent):
    """Evento: compra simulada completada."""

    symbol: str = ""
    base_asset: str = ""
    quantity: float = 0.0
    price: float = 0.0           # ask simulado
    quote_asset: str = "USDT"
    quote_balance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "symbol": self.symbol,
            "quantity": self.quantity,
            "price": self.price,
            "quote_balance": self.quote_balance,
        })
        return base

    def to_message(self, label: str = "") -> str:
        return (
            f"🟠 {_prefix(label)}Bought {self.quantity} {self.base_asset} "
            f"at ${self.price:.4f}\n"
            f"New {self.quote_asset} Balance: ${self.quote_balance:.2f}"
        )


@dataclass(frozen=True)
class BuySkipped(DomainEvent):
    """Evento: compra descartada (cantidad por debajo del step size)."""

    symbol: str = ""
    price: float = 0.0
    budget: float = 0.0
    reason: str = "budget too low"

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "symbol": self.symbol,
            "price": self.price,
            "budget": self.budget,
            "reason": self.reason,
        })
        return base

    def to_message(self, label: str = "") -> str:
        return (
            f"❌ {_prefix(label)}Skipped buy: {self.reason.capitalize()} "
            f"to buy {self.symbol} at ${self.price}"
        )


@dataclass(frozen=True)
class SellExecuted(DomainEvent):
    """Evento: venta simulada completada."""

    symbol: str = ""
    base_asset: str = ""
    quantity: float = 0.0
    price: float = 0.0           # bid simulado
    proceeds: float = 0.0
    pnl: float = 0.0
    reason: str = ""
    quote_asset: str = "USDT"
    quote_balance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "symbol": self.symbol,
            "quantity": self.quantity,
            "price": self.price,
            "proceeds": self.proceeds,
            "pnl": self.pnl,
            "reason": self.reason,
            "quote_balance": self.quote_balance,
        })
        return base

    def to_message(self, label: str = "") -> str:
        return (
            f"🟢 {_prefix(label)}Sold {self.quantity} {self.base_asset} "
            f"at ${self.price:.4f}\n"
            f"Reason: {self.reason}\n"
            f"Received ${self.proceeds:.2f}\n"
            f"New {self.quote_asset} Balance: ${self.quote_balance:.2f}"
        )


@dataclass(frozen=True)
class SignalAlert(DomainEvent):
    """Evento: señal informativa (estrategias que no ejecutan)."""

    symbol: str = ""
    price: float = 0.0
    text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({"symbol": self.symbol, "price": self.price, "text": self.text})
        return base

    def to_message(self, label: str = "") -> str:
        return f"💰 {_prefix(label)}{self.symbol}: {self.text}"
