"""
Scheduler: fixed-interval, per-pair concurrent reconciliation loop.

Each cycle fans out one task per registered pair inside a TaskGroup and
joins them all before sleeping. Within a pair the pipeline is strictly
sequential:

    read active bin -> read positions -> read balances -> report fees
    -> size -> reconcile -> execute -> persist state

Every exception raised inside a pair's pipeline is caught at the pair
boundary, logged and counted; the cycle is a no-op for that pair and the
state store is left untouched. Cancellation is never swallowed: cancelling
the task running Scheduler.run() cancels in-flight pair tasks and exits.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Dict, List, Optional, TypeVar, TYPE_CHECKING

from lpbot.config.config_validator import validate_and_log
from lpbot.core.errors import CollaboratorError, InvalidPairConfig
from lpbot.core.types import BinSnapshot, PositionSnapshot, to_natural
from lpbot.execution.command_executor import CommandExecutor
from lpbot.execution.position_reconciler import PositionReconciler
from lpbot.execution.position_state import PositionState, PositionStateStore, PositionStatus
from lpbot.infra.logging_cfg import log_event
from lpbot.monitoring.metrics import LPMetrics
from lpbot.strategy.sizing import SizingCalculator

if TYPE_CHECKING:
    from lpbot.config.pair_config import PairConfig
    from lpbot.infra.collaborators import PoolService, PriceOracle, WalletBalanceService

log = logging.getLogger("lpbot")

T = TypeVar("T")


class CycleOutcome(str, Enum):
    ACTED = "acted"
    NOOP = "noop"
    ERROR = "error"


@dataclass
class PairCycleResult:
    """Result of one pair's cycle."""
    pair: str
    outcome: CycleOutcome
    reason: Optional[str] = None
    error: Optional[str] = None
    duration_ms: float = 0.0


class Scheduler:
    """
    Drives the reconciler for every registered pair.

    Owns the PositionStateStore; each pair task reads and writes only the
    record of its own position.
    """

    def __init__(
        self,
        pool_service: "PoolService",
        wallet_service: "WalletBalanceService",
        price_oracle: "PriceOracle",
        owner: str,
        interval_sec: float,
        call_timeout_sec: float = 60.0,
        reconciler: Optional[PositionReconciler] = None,
        state_store: Optional[PositionStateStore] = None,
        metrics: Optional[LPMetrics] = None,
    ) -> None:
        self._pool = pool_service
        self._wallet = wallet_service
        self._oracle = price_oracle
        self._owner = owner
        self._interval = interval_sec
        self._call_timeout = call_timeout_sec
        self._reconciler = reconciler or PositionReconciler()
        self.state_store = state_store or PositionStateStore()
        self.metrics = metrics or LPMetrics()
        self._executor = CommandExecutor(pool_service, owner, on_command=self.metrics.record_command)
        self._pairs: Dict[str, "PairConfig"] = {}
        # pair -> id of the position whose state record the pair owns
        self._managed: Dict[str, str] = {}
        self._stop = asyncio.Event()
        self.cycles_run = 0

    # === Registration ===

    def add_pair(self, config: "PairConfig") -> None:
        """
        Validate and register a pair.

        Raises:
            InvalidPairConfig: config failed validation or the name is taken.
                Other registered pairs are unaffected.
        """
        if config.name in self._pairs:
            self.metrics.pairs_rejected.inc()
            raise InvalidPairConfig(config.name, ["pair already registered"])

        result = validate_and_log(config, log)
        if not result.valid:
            self.metrics.pairs_rejected.inc()
            raise InvalidPairConfig(config.name, [i.message for i in result.get_errors()])

        self._pairs[config.name] = config
        self.metrics.pairs_registered.set(len(self._pairs))
        log_event(log, "pair_registered", pair=config.name, pool=config.pool_address,
                  strategy=config.strategy_type.value, range=config.total_range_interval)

    @property
    def pairs(self) -> List["PairConfig"]:
        return list(self._pairs.values())

    # === Loop ===

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """Run cycles until stop() is called, the task is cancelled, or max_cycles is reached."""
        log_event(log, "scheduler_start", pairs=list(self._pairs), interval_sec=self._interval)
        try:
            while not self._stop.is_set():
                await self.run_cycle()
                if max_cycles is not None and self.cycles_run >= max_cycles:
                    break
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            log_event(log, "scheduler_cancelled", cycles=self.cycles_run)
            raise
        log_event(log, "scheduler_stopped", cycles=self.cycles_run)

    def stop(self) -> None:
        """Let the loop exit after the in-flight cycle."""
        self._stop.set()

    async def run_cycle(self) -> List[PairCycleResult]:
        """Run one cycle for every pair concurrently and join them all."""
        tasks: List[asyncio.Task] = []
        async with asyncio.TaskGroup() as tg:
            for cfg in self._pairs.values():
                tasks.append(tg.create_task(self._run_pair(cfg), name=f"pair-{cfg.name}"))
        self.cycles_run += 1
        return [t.result() for t in tasks]

    # === Per-pair pipeline ===

    async def _run_pair(self, config: "PairConfig") -> PairCycleResult:
        start = time.monotonic()
        pair = config.name
        try:
            result = await self._reconcile_pair(config)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            result = PairCycleResult(pair=pair, outcome=CycleOutcome.ERROR, error=f"{type(exc).__name__}: {exc}")
            self.metrics.errors_total.labels(pair=pair, error_type=type(exc).__name__).inc()
            log_event(
                log, "pair_cycle_error", level=logging.ERROR,
                pair=pair, error_type=type(exc).__name__, error=str(exc),
            )
        elapsed = time.monotonic() - start
        result.duration_ms = elapsed * 1000
        self.metrics.cycle_duration_seconds.labels(pair=pair).observe(elapsed)
        self.metrics.cycles_total.labels(pair=pair, outcome=result.outcome.value).inc()
        return result

    async def _reconcile_pair(self, config: "PairConfig") -> PairCycleResult:
        pair, pool = config.name, config.pool_address

        active_bin = await self._bounded(self._pool.get_active_bin(pool))
        price = active_bin.price_per_token
        if not math.isfinite(price) or price <= 0:
            raise CollaboratorError(f"pool reported unusable price {price}")

        positions = await self._bounded(self._pool.get_user_positions(pool, self._owner))
        if len(positions) > 1:
            log_event(
                log, "multiple_positions", level=logging.WARNING,
                pair=pair, count=len(positions), managed=positions[0].position_id,
            )
        balances = await self._bounded(self._wallet.pair_balances(self._owner, pool))

        position_id = positions[0].position_id if positions else None
        previous_id = self._managed.pop(pair, None)
        if previous_id is not None and previous_id not in {p.position_id for p in positions}:
            # Closed on chain since the last cycle
            await self.state_store.apply(previous_id, PositionState.no_position(), pair=pair, reason="position_gone")
        if position_id is not None:
            self._managed[pair] = position_id

        state = await self.state_store.get(position_id)

        if positions:
            await self._report_fees(pair, pool, positions[0], active_bin)

        balance_x, balance_y = balances.natural(active_bin)
        sized = SizingCalculator.size(balance_x, balance_y, price, config)
        decision = self._reconciler.reconcile(positions, active_bin, sized, config, state)

        log_event(
            log, "pair_decision",
            level=logging.DEBUG if decision.is_noop else logging.INFO,
            pair=pair,
            active_bin=active_bin.bin_id,
            price=price,
            state=state.label,
            amount_x=sized.amount_x,
            amount_y=sized.amount_y,
            decision=decision.describe(),
        )
        if decision.is_noop:
            return PairCycleResult(pair=pair, outcome=CycleOutcome.NOOP, reason=decision.reason)

        result = await self._executor.execute(pair, pool, decision, active_bin)

        # Persist only once every command has succeeded
        if decision.next_state is not None and result.position_id is not None:
            await self.state_store.apply(result.position_id, decision.next_state, pair=pair, reason=decision.reason)
            self.metrics.record_state(pair, decision.next_state)
            if decision.next_state.status is PositionStatus.NO_POSITION:
                self._managed.pop(pair, None)
            else:
                self._managed[pair] = result.position_id

        return PairCycleResult(pair=pair, outcome=CycleOutcome.ACTED, reason=decision.reason)

    async def _report_fees(
        self,
        pair: str,
        pool: str,
        position: PositionSnapshot,
        active_bin: BinSnapshot,
    ) -> None:
        """Log unclaimed fees in USD. Oracle failures never block the decision."""
        if not position.has_unclaimed_fees:
            self.metrics.unclaimed_fees_usd.labels(pair=pair).set(0.0)
            return
        fees_in_y = (
            to_natural(position.fee_x, active_bin.decimals_x) * active_bin.price_per_token
            + to_natural(position.fee_y, active_bin.decimals_y)
        )
        try:
            y_usd = await self._bounded(self._oracle.price_of(pool))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log_event(log, "fee_valuation_failed", level=logging.WARNING, pair=pair, error=str(exc))
            return
        fees_usd = fees_in_y * y_usd
        self.metrics.unclaimed_fees_usd.labels(pair=pair).set(fees_usd)
        log_event(log, "unclaimed_fees", pair=pair, position=position.position_id,
                  fees_in_y=round(fees_in_y, 9), fees_usd=round(fees_usd, 3))

    async def _bounded(self, aw: Awaitable[T]) -> T:
        return await asyncio.wait_for(aw, timeout=self._call_timeout)
