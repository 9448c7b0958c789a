"""Tests for spotpulse/state/price_window.py"""

import pytest

from spotpulse.state.price_window import PriceWindow


class TestPriceWindow:

    def test_fifo_eviction_at_capacity(self):
        window = PriceWindow(3)
        for price in (1, 2, 3, 4):
            window.append(price)

        assert window.snapshot() == (2, 3, 4)
        assert len(window) == 3

    def test_provisional_slot_is_overwritten(self):
        window = PriceWindow(5)
        window.append(1.0)
        window.set_provisional(10.0)
        window.set_provisional(11.0)

        assert window.snapshot() == (1.0, 11.0)
        assert window.has_provisional

    def test_finalize_freezes_provisional_slot(self):
        window = PriceWindow(5)
        window.set_provisional(10.0)
        window.finalize(12.0)
        window.finalize(13.0)

        assert window.snapshot() == (12.0, 13.0)
        assert not window.has_provisional

    def test_provisional_after_final_appends_new_slot(self):
        window = PriceWindow(5)
        window.finalize(12.0)
        window.set_provisional(14.0)

        assert window.snapshot() == (12.0, 14.0)
        assert window.last == 14.0

    def test_clear_empties_window(self):
        window = PriceWindow(2)
        window.set_provisional(1.0)
        window.clear()

        assert window.snapshot() == ()
        assert window.last is None
        assert not window.has_provisional

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            PriceWindow(0)
