"""
Typed snapshots exchanged between the pool adapters and the reconciler.

Snapshots are rebuilt every cycle and never mutated in place. Token amounts
on snapshots are raw (undecimaled) integers; the reconciler converts them to
natural units with the decimals carried on BinSnapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class StrategyType(str, Enum):
    """Liquidity shape requested from the pool program. Opaque to the reconciler."""
    SPOT_ONE_SIDE = "SpotOneSide"
    CURVE_ONE_SIDE = "CurveOneSide"
    BID_ASK_ONE_SIDE = "BidAskOneSide"
    SPOT_IMBALANCED = "SpotImBalanced"
    CURVE_IMBALANCED = "CurveImBalanced"
    BID_ASK_IMBALANCED = "BidAskImBalanced"
    SPOT_BALANCED = "SpotBalanced"
    CURVE_BALANCED = "CurveBalanced"
    BID_ASK_BALANCED = "BidAskBalanced"

    @classmethod
    def parse(cls, raw: str) -> "StrategyType":
        """Accept either the pool program name ("BidAskImBalanced") or the member name."""
        for member in cls:
            if raw == member.value or raw.upper() == member.name:
                return member
        raise ValueError(f"unknown strategy type: {raw}")


class TokenSide(str, Enum):
    X = "X"
    Y = "Y"

    @property
    def other(self) -> "TokenSide":
        return TokenSide.Y if self is TokenSide.X else TokenSide.X


@dataclass(frozen=True)
class BinRange:
    """Inclusive range of bin ids."""
    lower: int
    upper: int

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise ValueError(f"invalid bin range [{self.lower}, {self.upper}]")

    @property
    def width(self) -> int:
        return self.upper - self.lower + 1

    @classmethod
    def around(cls, center: int, below: int, above: int) -> "BinRange":
        return cls(center - below, center + above)


@dataclass(frozen=True)
class BinSnapshot:
    """Pool state at the active bin."""
    bin_id: int
    price_per_token: float  # Y per X, decimal-adjusted
    decimals_x: int
    decimals_y: int


@dataclass(frozen=True)
class BinLiquidity:
    """One bin of a position's liquidity breakdown."""
    bin_id: int
    x_amount: int
    y_amount: int
    # Marker bin reported for a freshly created position before any deposit
    is_placeholder: bool = False

    @property
    def has_liquidity(self) -> bool:
        return self.is_placeholder or self.x_amount > 0 or self.y_amount > 0


@dataclass(frozen=True)
class PositionSnapshot:
    position_id: str
    lower_bin_id: int
    upper_bin_id: int
    total_x_amount: int
    total_y_amount: int
    fee_x: int = 0
    fee_y: int = 0
    bins: Tuple[BinLiquidity, ...] = field(default_factory=tuple)

    @property
    def has_unclaimed_fees(self) -> bool:
        return self.fee_x > 0 or self.fee_y > 0


@dataclass(frozen=True)
class WalletBalances:
    """Raw wallet balances, not yet net of reserves."""
    balance_x: int
    balance_y: int

    def natural(self, active_bin: BinSnapshot) -> Tuple[float, float]:
        return (
            to_natural(self.balance_x, active_bin.decimals_x),
            to_natural(self.balance_y, active_bin.decimals_y),
        )


@dataclass(frozen=True)
class Receipt:
    """Result of a submitted transaction."""
    signature: str
    position_id: Optional[str] = None


def to_natural(raw: int, decimals: int) -> float:
    return raw / 10 ** decimals


def to_raw(amount: float, decimals: int) -> int:
    # Floor: never ask the program for more than the wallet holds
    return max(0, int(amount * 10 ** decimals))
