"""
Tests for SizingCalculator.
"""
import itertools

import pytest

from conftest import make_config
from lpbot.strategy.sizing import SizedAmounts, SizingCalculator, size


class TestSizingExamples:

    def test_cap_exceeded_by_x_alone(self):
        cfg = make_config(min_reserve_x=2, min_reserve_y=0, max_position_size_in_y=500)
        out = SizingCalculator.size(10, 0, 100, cfg)
        assert out.amount_x == pytest.approx(5)
        assert out.amount_y == 0

    def test_no_x_available(self):
        cfg = make_config(min_reserve_x=2, min_reserve_y=50, max_position_size_in_y=500)
        out = SizingCalculator.size(1, 300, 100, cfg)
        assert out.amount_x == 0
        assert out.amount_y == pytest.approx(250)

    def test_mixed_x_and_y(self):
        cfg = make_config(min_reserve_x=2, min_reserve_y=10, max_position_size_in_y=500)
        out = SizingCalculator.size(5, 100, 50, cfg)
        assert out.amount_x == pytest.approx(3)
        assert out.amount_y == pytest.approx(90)

    def test_y_capped_by_remaining_budget(self):
        cfg = make_config(min_reserve_x=0, min_reserve_y=0, max_position_size_in_y=100)
        out = SizingCalculator.size(0.5, 1000, 100, cfg)
        assert out.amount_x == pytest.approx(0.5)
        assert out.amount_y == pytest.approx(50)

    def test_balances_below_reserves_yield_zero(self):
        cfg = make_config(min_reserve_x=2, min_reserve_y=200)
        out = size(1, 150, 100, cfg)
        assert out == SizedAmounts(0.0, 0.0)

    def test_y_only_capped(self):
        cfg = make_config(min_reserve_x=0, min_reserve_y=0, max_position_size_in_y=10)
        out = SizingCalculator.size(0, 1000, 100, cfg)
        assert out.amount_y == pytest.approx(10)


class TestSizingProperties:

    BALANCES = [0, 0.001, 1, 2, 7.5, 100, 12345.678]
    PRICES = [0.0001, 0.5, 1, 42.0, 150.25, 90000]
    CAPS = [0.01, 10, 500, 1e6]

    def test_non_negative_and_within_cap(self):
        for bx, by, price, cap in itertools.product(self.BALANCES, self.BALANCES, self.PRICES, self.CAPS):
            cfg = make_config(min_reserve_x=1, min_reserve_y=1, max_position_size_in_y=cap)
            out = SizingCalculator.size(bx, by, price, cfg)
            assert out.amount_x >= 0
            assert out.amount_y >= 0
            assert out.value_in_y(price) <= cap + 1e-9 * max(1.0, cap)

    def test_never_commits_reserves(self):
        for bx, by, price in itertools.product(self.BALANCES, self.BALANCES, self.PRICES):
            cfg = make_config(min_reserve_x=2, min_reserve_y=3, max_position_size_in_y=1e9)
            out = SizingCalculator.size(bx, by, price, cfg)
            assert out.amount_x <= max(0.0, bx - 2) + 1e-9
            assert out.amount_y <= max(0.0, by - 3) + 1e-9

    def test_deterministic(self):
        cfg = make_config()
        assert SizingCalculator.size(7, 300, 150.25, cfg) == SizingCalculator.size(7, 300, 150.25, cfg)
