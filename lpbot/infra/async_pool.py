"""
Resilient wrapper around a PoolService adapter.

Every call is bounded by a timeout. Reads are retried twice with exponential
backoff and jitter. A transaction submission is retried, up to submit_retries
attempts, only when the adapter raises TransactionNotSent; a timeout or any
other failure leaves the outcome unknown and is final for the cycle. The
wallet's submission lock is held for the whole sequence. A rejected
simulation is never retried.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Type, TYPE_CHECKING

from lpbot.core.errors import CollaboratorError, SimulationError, TransactionError, TransactionNotSent
from lpbot.core.types import BinRange, BinSnapshot, PositionSnapshot, Receipt, StrategyType
from lpbot.infra.logging_cfg import log_event
from lpbot.infra.submission import SubmissionCoordinator

if TYPE_CHECKING:
    from lpbot.infra.collaborators import PoolService

log = logging.getLogger("lpbot")


class ResilientPoolService:
    def __init__(
        self,
        inner: "PoolService",
        wallet: str,
        timeout: float = 60.0,
        submit_retries: int = 15,
        read_retries: int = 2,
        coordinator: Optional[SubmissionCoordinator] = None,
        base_backoff: float = 0.5,
        max_backoff: float = 8.0,
    ) -> None:
        self._inner = inner
        self._wallet = wallet
        self._timeout = timeout
        self._submit_retries = submit_retries
        self._read_retries = read_retries
        self._coordinator = coordinator or SubmissionCoordinator()
        self._base_backoff = base_backoff
        self._max_backoff = max_backoff

    # === Reads ===

    async def get_active_bin(self, pool: str) -> BinSnapshot:
        return await self._call("get_active_bin", lambda: self._inner.get_active_bin(pool), self._read_retries)

    async def get_user_positions(self, pool: str, owner: str) -> List[PositionSnapshot]:
        return await self._call(
            "get_user_positions", lambda: self._inner.get_user_positions(pool, owner), self._read_retries,
        )

    async def simulate_add_liquidity(
        self,
        pool: str,
        position_id: str,
        amount_x: int,
        amount_y: int,
        bin_range: BinRange,
        strategy_type: StrategyType,
    ) -> None:
        await self._call(
            "simulate_add_liquidity",
            lambda: self._inner.simulate_add_liquidity(pool, position_id, amount_x, amount_y, bin_range, strategy_type),
            self._read_retries,
        )

    # === Writes ===

    async def create_empty_position(self, pool: str, owner: str, bin_range: BinRange) -> Receipt:
        return await self._submit("create_empty_position", lambda: self._inner.create_empty_position(pool, owner, bin_range))

    async def add_liquidity(
        self,
        pool: str,
        position_id: str,
        amount_x: int,
        amount_y: int,
        bin_range: BinRange,
        strategy_type: StrategyType,
    ) -> Receipt:
        return await self._submit(
            "add_liquidity",
            lambda: self._inner.add_liquidity(pool, position_id, amount_x, amount_y, bin_range, strategy_type),
        )

    async def remove_liquidity(
        self,
        pool: str,
        position_id: str,
        bin_ids: Sequence[int],
        bps: int,
        close_after: bool,
    ) -> Receipt:
        return await self._submit(
            "remove_liquidity",
            lambda: self._inner.remove_liquidity(pool, position_id, bin_ids, bps, close_after),
        )

    async def close_position(self, pool: str, position_id: str, owner: str) -> Receipt:
        return await self._submit("close_position", lambda: self._inner.close_position(pool, position_id, owner))

    async def claim_fees(self, pool: str, position_id: str, owner: str) -> Receipt:
        return await self._submit("claim_fees", lambda: self._inner.claim_fees(pool, position_id, owner))

    # === Internals ===

    async def _submit(self, op: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        lock = await self._coordinator.get_lock(self._wallet)
        async with lock:
            try:
                return await self._call(op, fn, self._submit_retries - 1, retry_on=(TransactionNotSent,))
            except CollaboratorError:
                raise
            except asyncio.TimeoutError as exc:
                # May still land; the next cycle re-reads the position from chain
                raise TransactionError(f"{op} outcome unknown after {self._timeout}s") from exc
            except Exception as exc:
                raise TransactionError(f"{op} failed: {exc!r}") from exc

    async def _call(
        self,
        op: str,
        fn: Callable[[], Awaitable[Any]],
        retries: int,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ) -> Any:
        backoff = self._base_backoff
        for attempt in range(retries + 1):
            try:
                return await asyncio.wait_for(fn(), timeout=self._timeout)
            except SimulationError:
                raise
            except retry_on as exc:
                if attempt >= retries:
                    raise
                log_event(
                    log, "collaborator_retry", level=logging.WARNING,
                    op=op, attempt=attempt + 1, error=repr(exc),
                )
                await asyncio.sleep(backoff + random.uniform(0, backoff * 0.5))
                backoff = min(backoff * 2, self._max_backoff)
