"""
Liquidity commands emitted by the reconciler.

Commands are plain values; the reconciler never performs I/O. The
CommandExecutor turns them into PoolService calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Tuple, Union

from lpbot.core.types import BinRange, StrategyType
from lpbot.execution.position_state import PositionState

FULL_BPS = 10_000


@dataclass(frozen=True)
class CreateEmptyPosition:
    name: ClassVar[str] = "create_empty_position"
    bin_range: BinRange


@dataclass(frozen=True)
class AddLiquidity:
    """Deposit natural-unit amounts across a bin range."""
    name: ClassVar[str] = "add_liquidity"
    amount_x: float
    amount_y: float
    bin_range: BinRange
    strategy_type: StrategyType
    # Re-deposit of a withdrawn one-sided position with both tokens
    imbalanced: bool = False

    @property
    def label(self) -> str:
        return "add_imbalanced" if self.imbalanced else self.name


@dataclass(frozen=True)
class RemoveLiquidity:
    name: ClassVar[str] = "remove_liquidity"
    bin_ids: Tuple[int, ...]
    close_position: bool
    bps: int = FULL_BPS


@dataclass(frozen=True)
class ClaimFees:
    name: ClassVar[str] = "claim_fees"


@dataclass(frozen=True)
class ClosePosition:
    name: ClassVar[str] = "close_position"


Command = Union[CreateEmptyPosition, AddLiquidity, RemoveLiquidity, ClaimFees, ClosePosition]


def command_label(cmd: Command) -> str:
    return cmd.label if isinstance(cmd, AddLiquidity) else cmd.name


@dataclass(frozen=True)
class Decision:
    """
    Outcome of one reconciliation.

    next_state is applied only after every command succeeded. A decision
    without commands leaves state untouched.
    """
    reason: str
    position_id: Optional[str] = None
    commands: Tuple[Command, ...] = field(default_factory=tuple)
    next_state: Optional[PositionState] = None

    @property
    def is_noop(self) -> bool:
        return not self.commands

    def describe(self) -> str:
        if self.is_noop:
            return f"noop({self.reason})"
        return f"{self.reason}: " + " -> ".join(command_label(c) for c in self.commands)
