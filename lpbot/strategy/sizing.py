"""
SizingCalculator - how much of each token may be committed to a position.

Pure calculation module with no side effects. Inputs and outputs are in
natural (decimal-adjusted) token units; price is Y per X.

Guarantees for finite non-negative balances and price > 0:
- amount_x >= 0 and amount_y >= 0
- amount_x * price + amount_y <= max_position_size_in_y
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lpbot.config.pair_config import PairConfig


@dataclass(frozen=True)
class SizedAmounts:
    """Amounts available for the next liquidity add."""
    amount_x: float
    amount_y: float

    def value_in_y(self, price: float) -> float:
        return self.amount_x * price + self.amount_y


class SizingCalculator:
    """
    Caps committed value at max_position_size_in_y, spending X first.

    Thread-safety: stateless.
    """

    @staticmethod
    def size(balance_x: float, balance_y: float, price: float, config: "PairConfig") -> SizedAmounts:
        """
        Compute committable amounts.

        Args:
            balance_x: Wallet X balance (natural units)
            balance_y: Wallet Y balance (natural units)
            price: Pool price, Y per X. Must be > 0; callers reject other values.
            config: Pair configuration (reserves and cap)

        Returns:
            SizedAmounts
        """
        available_x = max(0.0, balance_x - config.min_reserve_x)
        available_x_in_y = available_x * price
        available_y = max(0.0, balance_y - config.min_reserve_y)
        cap = config.max_position_size_in_y

        if available_x_in_y > cap:
            # X alone covers the cap
            return SizedAmounts(amount_x=cap / price, amount_y=0.0)
        if available_x_in_y <= 0:
            return SizedAmounts(amount_x=0.0, amount_y=min(available_y, cap))

        required_y = cap - available_x_in_y
        return SizedAmounts(
            amount_x=available_x_in_y / price,
            amount_y=min(available_y, required_y),
        )


def size(balance_x: float, balance_y: float, price: float, config: "PairConfig") -> SizedAmounts:
    return SizingCalculator.size(balance_x, balance_y, price, config)
