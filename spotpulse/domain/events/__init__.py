"""Domain events."""
from spotpulse.domain.events.domain_events import (
    BuyExecuted,
    BuySkipped,
    DomainEvent,
    EngineStarted,
    SellExecuted,
    SignalAlert,
)

__all__ = [
    "DomainEvent",
    "EngineStarted",
    "BuyExecuted",
    "BuySkipped",
    "SellExecuted",
    "SignalAlert",
]
