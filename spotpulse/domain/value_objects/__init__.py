"""Domain value objects."""
from spotpulse.domain.value_objects.tick import Tick
from spotpulse.domain.value_objects.market_updates import FeedStatus, TickerUpdate

__all__ = ["Tick", "TickerUpdate", "FeedStatus"]
