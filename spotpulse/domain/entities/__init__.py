"""Domain entities."""
from spotpulse.domain.entities.candle import Candle
from spotpulse.domain.entities.decision import Action, Decision
from spotpulse.domain.entities.position import Position

__all__ = ["Candle", "Action", "Decision", "Position"]
