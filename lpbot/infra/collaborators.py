"""
Collaborator contracts consumed by the scheduler and executor.

All methods are coroutines; they are the only suspension points of a pair's
cycle. Implementations raise CollaboratorError (or a subclass) on failure.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

from lpbot.core.types import (
    BinRange,
    BinSnapshot,
    PositionSnapshot,
    Receipt,
    StrategyType,
    WalletBalances,
)


@runtime_checkable
class PoolService(Protocol):
    """Chain reads and writes for one DLMM program."""

    async def get_active_bin(self, pool: str) -> BinSnapshot: ...

    async def get_user_positions(self, pool: str, owner: str) -> List[PositionSnapshot]: ...

    async def create_empty_position(self, pool: str, owner: str, bin_range: BinRange) -> Receipt: ...

    async def simulate_add_liquidity(
        self,
        pool: str,
        position_id: str,
        amount_x: int,
        amount_y: int,
        bin_range: BinRange,
        strategy_type: StrategyType,
    ) -> None:
        """Dry run; raises SimulationError if the program would reject it."""
        ...

    async def add_liquidity(
        self,
        pool: str,
        position_id: str,
        amount_x: int,
        amount_y: int,
        bin_range: BinRange,
        strategy_type: StrategyType,
    ) -> Receipt: ...

    async def remove_liquidity(
        self,
        pool: str,
        position_id: str,
        bin_ids: Sequence[int],
        bps: int,
        close_after: bool,
    ) -> Receipt: ...

    async def close_position(self, pool: str, position_id: str, owner: str) -> Receipt: ...

    async def claim_fees(self, pool: str, position_id: str, owner: str) -> Receipt: ...


@runtime_checkable
class PriceOracle(Protocol):
    async def price_of(self, pool: str) -> float:
        """USD price of the pool's Y token. Reporting only."""
        ...


@runtime_checkable
class WalletBalanceService(Protocol):
    async def balance_of(self, owner: str, token: str) -> int: ...

    async def pair_balances(self, owner: str, pool: str) -> WalletBalances: ...
