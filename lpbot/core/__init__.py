"""
Core package.

Typed snapshots, unit helpers and the error taxonomy shared by all layers.
"""

from lpbot.core.errors import (
    BootstrapError,
    CollaboratorError,
    InvalidPairConfig,
    LPBotError,
    OracleError,
    SimulationError,
    TransactionError,
    TransactionNotSent,
)
from lpbot.core.types import (
    BinLiquidity,
    BinRange,
    BinSnapshot,
    PositionSnapshot,
    Receipt,
    StrategyType,
    TokenSide,
    WalletBalances,
    to_natural,
    to_raw,
)

__all__ = [
    "BootstrapError",
    "CollaboratorError",
    "InvalidPairConfig",
    "LPBotError",
    "OracleError",
    "SimulationError",
    "TransactionError",
    "TransactionNotSent",
    "BinLiquidity",
    "BinRange",
    "BinSnapshot",
    "PositionSnapshot",
    "Receipt",
    "StrategyType",
    "TokenSide",
    "WalletBalances",
    "to_natural",
    "to_raw",
]
