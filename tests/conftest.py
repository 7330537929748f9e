"""
Pytest configuration and fixtures.
Adds the repo root to sys.path so tests can import lpbot without installing it.
"""

import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from lpbot.config.pair_config import PairConfig  # noqa: E402
from lpbot.core.types import (  # noqa: E402
    BinLiquidity,
    BinSnapshot,
    PositionSnapshot,
    Receipt,
    StrategyType,
    WalletBalances,
)


def make_config(**overrides) -> PairConfig:
    values = dict(
        name="SOL-USDC",
        pool_address="BVRbyLjjfSBcoyiYFuxbgKYnWuiFaF9CSXEa5vdSZ9Hh",
        min_reserve_x=2.0,
        min_reserve_y=200.0,
        bin_step=10,
        max_position_size_in_y=10.0,
        total_range_interval=6,
        strategy_type=StrategyType.BID_ASK_IMBALANCED,
        balance_out_position=True,
    )
    values.update(overrides)
    return PairConfig(**values)


def make_position(
    lower=10,
    upper=20,
    bins=(),
    total_x=0,
    total_y=0,
    fee_x=0,
    fee_y=0,
    position_id="pos-1",
) -> PositionSnapshot:
    return PositionSnapshot(
        position_id=position_id,
        lower_bin_id=lower,
        upper_bin_id=upper,
        total_x_amount=total_x,
        total_y_amount=total_y,
        fee_x=fee_x,
        fee_y=fee_y,
        bins=tuple(BinLiquidity(*b) if isinstance(b, tuple) else b for b in bins),
    )


class FakePoolService:
    """In-memory PoolService recording every call."""

    def __init__(self, active_bin=None, positions=None):
        self.active_bin = active_bin or BinSnapshot(bin_id=15, price_per_token=100.0, decimals_x=9, decimals_y=6)
        self.positions = list(positions or [])
        self.calls = []
        self.fail_on = set()
        self.simulation_error = None

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def _drop(self, position_id):
        self.positions = [p for p in self.positions if p.position_id != position_id]

    async def get_active_bin(self, pool):
        self._record("get_active_bin", pool)
        return self.active_bin

    async def get_user_positions(self, pool, owner):
        self._record("get_user_positions", pool, owner)
        return list(self.positions)

    async def create_empty_position(self, pool, owner, bin_range):
        self._record("create_empty_position", pool, owner, bin_range)
        return Receipt(signature="sig-create", position_id="pos-new")

    async def simulate_add_liquidity(self, pool, position_id, amount_x, amount_y, bin_range, strategy_type):
        self._record("simulate_add_liquidity", pool, position_id, amount_x, amount_y, bin_range, strategy_type)
        if self.simulation_error is not None:
            raise self.simulation_error

    async def add_liquidity(self, pool, position_id, amount_x, amount_y, bin_range, strategy_type):
        self._record("add_liquidity", pool, position_id, amount_x, amount_y, bin_range, strategy_type)
        return Receipt(signature="sig-add")

    async def remove_liquidity(self, pool, position_id, bin_ids, bps, close_after):
        self._record("remove_liquidity", pool, position_id, tuple(bin_ids), bps, close_after)
        if close_after:
            self._drop(position_id)
        return Receipt(signature="sig-remove")

    async def close_position(self, pool, position_id, owner):
        self._record("close_position", pool, position_id, owner)
        self._drop(position_id)
        return Receipt(signature="sig-close")

    async def claim_fees(self, pool, position_id, owner):
        self._record("claim_fees", pool, position_id, owner)
        return Receipt(signature="sig-claim")

    def names(self):
        return [c[0] for c in self.calls]


class FakeWallet:
    def __init__(self, balance_x=0, balance_y=0):
        self.balances = WalletBalances(balance_x=balance_x, balance_y=balance_y)
        self.error = None

    async def balance_of(self, owner, token):
        return 0

    async def pair_balances(self, owner, pool):
        if self.error is not None:
            raise self.error
        return self.balances


class FakeOracle:
    def __init__(self, price=1.0):
        self.price = price
        self.error = None
        self.calls = 0

    async def price_of(self, pool):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.price


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def pool_service():
    return FakePoolService()
