"""Estado en memoria del motor (nunca persistido)."""
from spotpulse.state.engine_state import EngineState, SignalState
from spotpulse.state.price_window import PriceWindow

__all__ = ["EngineState", "SignalState", "PriceWindow"]
