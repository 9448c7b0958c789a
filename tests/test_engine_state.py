"""Tests for spotpulse/state/engine_state.py"""

from spotpulse.domain.entities.position import Position
from spotpulse.state.engine_state import EngineState, SignalState


class TestSignalStateCrossover:

    def test_crossover_detected_on_third_step(self):
        """short [5, 5, 4] against long [4, 4.5, 4.5]."""
        shorts = [5.0, 5.0, 4.0]
        longs = [4.0, 4.5, 4.5]
        signal = SignalState()

        signal.apply_crossover(shorts[0], shorts[1], longs[0], longs[1])
        assert signal.crossed_down is False

        signal.apply_crossover(shorts[1], shorts[2], longs[1], longs[2])
        assert signal.crossed_down is True

    def test_cross_back_above_clears_flag(self):
        signal = SignalState(crossed_down=True)

        signal.apply_crossover(4.0, 5.0, 4.5, 4.5)

        assert signal.crossed_down is False

    def test_staying_below_keeps_flag(self):
        signal = SignalState(crossed_down=True)

        signal.apply_crossover(4.0, 4.2, 4.5, 4.5)

        assert signal.crossed_down is True

    def test_reset_clears_everything(self):
        signal = SignalState(crossed_down=True, rising=True, falling=True)
        signal.reset()

        assert signal.to_dict() == {"crossed_down": False, "rising": False, "falling": False}


class TestEngineState:

    def test_signal_state_is_created_once_per_symbol(self):
        state = EngineState()

        first = state.signal_state("ARUSDT")
        assert state.signal_state("ARUSDT") is first
        assert state.signal_state("SOLUSDT") is not first

    def test_holds_only_matching_symbol(self):
        state = EngineState(position=Position("ARUSDT", 100.1, 0.299, 100.0))

        assert state.has_position
        assert state.holds("ARUSDT")
        assert not state.holds("SOLUSDT")

    def test_idle_requires_no_position_and_no_buy_in_flight(self):
        state = EngineState()
        assert state.idle

        state.buying = True
        assert not state.idle

        state.buying = False
        state.position = Position("ARUSDT", 100.1, 0.299, 100.0)
        assert not state.idle

    def test_reset_guards(self):
        state = EngineState(buying=True, selling=True)
        state.reset_guards()

        assert not state.buying
        assert not state.selling

    def test_reset_signals_single_symbol(self):
        state = EngineState()
        state.signal_state("ARUSDT").falling = True
        state.signal_state("SOLUSDT").falling = True

        state.reset_signals("ARUSDT")

        assert state.signal_state("ARUSDT").falling is False
        assert state.signal_state("SOLUSDT").falling is True

    def test_reset_signals_keeps_position(self):
        position = Position("ARUSDT", 100.1, 0.299, 100.0)
        state = EngineState(position=position)
        state.signal_state("ARUSDT").crossed_down = True

        state.reset_signals()

        assert state.position is position
        assert state.signal_state("ARUSDT").crossed_down is False
