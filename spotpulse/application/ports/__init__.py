from spotpulse.application.ports.exchange_metadata import IExchangeMetadata
from spotpulse.application.ports.market_data_provider import FeedEvent, IMarketDataProvider
from spotpulse.application.ports.notifier import INotifier, IOutcomePublisher

__all__ = [
    "IExchangeMetadata",
    "IMarketDataProvider",
    "FeedEvent",
    "INotifier",
    "IOutcomePublisher",
]
