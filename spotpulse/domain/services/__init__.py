"""Domain services (stateless)."""
from spotpulse.domain.services.indicator_calculator import IndicatorCalculator
from spotpulse.domain.services import sizing

__all__ = ["IndicatorCalculator", "sizing"]
