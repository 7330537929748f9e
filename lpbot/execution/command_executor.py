"""
CommandExecutor - turns a Decision into PoolService calls.

Commands run strictly in order. The first failure aborts the rest and
propagates to the caller, which then leaves the pair's PositionState
untouched so the next cycle re-derives everything from chain state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, TYPE_CHECKING

from lpbot.core.types import BinSnapshot, Receipt, to_raw
from lpbot.execution.commands import (
    AddLiquidity,
    ClaimFees,
    ClosePosition,
    Command,
    CreateEmptyPosition,
    Decision,
    RemoveLiquidity,
    command_label,
)
from lpbot.infra.logging_cfg import log_event

if TYPE_CHECKING:
    from lpbot.infra.collaborators import PoolService

log = logging.getLogger("lpbot")


@dataclass
class ExecutionResult:
    """What a fully executed decision did."""
    position_id: Optional[str]
    receipts: List[Receipt]


class CommandExecutor:
    """
    Executes commands for one pair.

    Amounts on AddLiquidity are natural units; they are floored to raw
    integer units with the active bin's decimals before submission. Every
    add is simulated first and a rejected simulation aborts the decision
    without submitting anything.
    """

    def __init__(
        self,
        pool_service: "PoolService",
        owner: str,
        on_command: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self._pool = pool_service
        self._owner = owner
        # Callback(pair, command_label) after each successful command
        self._on_command = on_command

    async def execute(
        self,
        pair: str,
        pool: str,
        decision: Decision,
        active_bin: BinSnapshot,
    ) -> ExecutionResult:
        position_id = decision.position_id
        receipts: List[Receipt] = []

        for cmd in decision.commands:
            receipt = await self._run(pool, position_id, cmd, active_bin)
            if isinstance(cmd, CreateEmptyPosition) and receipt.position_id:
                position_id = receipt.position_id
            receipts.append(receipt)
            log_event(
                log, "command_done",
                pair=pair,
                command=command_label(cmd),
                position=position_id,
                signature=receipt.signature,
            )
            if self._on_command:
                self._on_command(pair, command_label(cmd))

        return ExecutionResult(position_id=position_id, receipts=receipts)

    async def _run(
        self,
        pool: str,
        position_id: Optional[str],
        cmd: Command,
        active_bin: BinSnapshot,
    ) -> Receipt:
        if isinstance(cmd, CreateEmptyPosition):
            return await self._pool.create_empty_position(pool, self._owner, cmd.bin_range)

        if position_id is None:
            raise ValueError(f"{command_label(cmd)} requires an existing position")

        if isinstance(cmd, AddLiquidity):
            amount_x = to_raw(cmd.amount_x, active_bin.decimals_x)
            amount_y = to_raw(cmd.amount_y, active_bin.decimals_y)
            await self._pool.simulate_add_liquidity(
                pool, position_id, amount_x, amount_y, cmd.bin_range, cmd.strategy_type,
            )
            return await self._pool.add_liquidity(
                pool, position_id, amount_x, amount_y, cmd.bin_range, cmd.strategy_type,
            )

        if isinstance(cmd, RemoveLiquidity):
            return await self._pool.remove_liquidity(
                pool, position_id, cmd.bin_ids, cmd.bps, cmd.close_position,
            )

        if isinstance(cmd, ClaimFees):
            return await self._pool.claim_fees(pool, position_id, self._owner)

        if isinstance(cmd, ClosePosition):
            return await self._pool.close_position(pool, position_id, self._owner)

        raise TypeError(f"unknown command {cmd!r}")
