"""
Execution package.

Position state, command value objects, the reconciler state machine and the
executor that submits its decisions.
"""

from lpbot.execution.command_executor import CommandExecutor, ExecutionResult
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
from lpbot.execution.position_reconciler import PositionReconciler
from lpbot.execution.position_state import PositionState, PositionStateStore, PositionStatus

__all__ = [
    "AddLiquidity",
    "ClaimFees",
    "ClosePosition",
    "Command",
    "CommandExecutor",
    "CreateEmptyPosition",
    "Decision",
    "ExecutionResult",
    "PositionReconciler",
    "PositionState",
    "PositionStateStore",
    "PositionStatus",
    "RemoveLiquidity",
    "command_label",
]
