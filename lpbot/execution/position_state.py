"""
Position State - why a live position is composed the way it is.

The chain tells us balances and range; it cannot tell us whether liquidity
was placed one-sided on purpose or balanced. That single fact is kept here,
one record per position id:

    NO_POSITION ──create──> WAITING ──place──> ONE_SIDED{X|Y}
         ^                    ^  │                  │
         │                    │  └──place──> BALANCED <──rebalance──┘
         └──close── (any) ────┘ remove

A record holds exactly one status, so ONE_SIDED and BALANCED can never hold
at the same time. NO_POSITION is represented by the absence of a record.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional

from lpbot.core.types import TokenSide

log = logging.getLogger("lpbot")


class PositionStatus(Enum):
    NO_POSITION = auto()
    WAITING = auto()     # Position exists, empty of liquidity
    ONE_SIDED = auto()   # Liquidity committed in one token only
    BALANCED = auto()    # Liquidity committed in both tokens


@dataclass(frozen=True)
class PositionState:
    status: PositionStatus
    side: Optional[TokenSide] = None  # Only for ONE_SIDED

    def __post_init__(self) -> None:
        if (self.status is PositionStatus.ONE_SIDED) != (self.side is not None):
            raise ValueError(f"side must be set exactly for ONE_SIDED, got {self.status.name}/{self.side}")

    @classmethod
    def no_position(cls) -> "PositionState":
        return cls(PositionStatus.NO_POSITION)

    @classmethod
    def waiting(cls) -> "PositionState":
        return cls(PositionStatus.WAITING)

    @classmethod
    def one_sided(cls, side: TokenSide) -> "PositionState":
        return cls(PositionStatus.ONE_SIDED, side)

    @classmethod
    def balanced(cls) -> "PositionState":
        return cls(PositionStatus.BALANCED)

    @property
    def label(self) -> str:
        if self.side is not None:
            return f"{self.status.name}:{self.side.value}"
        return self.status.name


class PositionStateStore:
    """
    Concurrency-safe map of position id -> PositionState.

    Per-pair tasks only touch their own key; the lock makes insert/delete
    atomic with respect to snapshot iteration.
    """

    def __init__(self) -> None:
        self._states: Dict[str, PositionState] = {}
        self._lock = asyncio.Lock()
        self._last_changed_ms: Dict[str, int] = {}

    async def get(self, position_id: Optional[str]) -> PositionState:
        """State for a position; an untracked live position reads as WAITING."""
        if position_id is None:
            return PositionState.no_position()
        async with self._lock:
            return self._states.get(position_id, PositionState.waiting())

    async def apply(self, position_id: str, state: PositionState, pair: str = "", reason: str = "") -> None:
        """Persist a new state; NO_POSITION deletes the record."""
        async with self._lock:
            previous = self._states.get(position_id)
            if state.status is PositionStatus.NO_POSITION:
                self._states.pop(position_id, None)
                self._last_changed_ms.pop(position_id, None)
            else:
                self._states[position_id] = state
                self._last_changed_ms[position_id] = int(time.time() * 1000)

        if previous != state:
            log.info(json.dumps({
                "event": "position_state_change",
                "pair": pair,
                "position": position_id,
                "from": previous.label if previous else PositionStatus.NO_POSITION.name,
                "to": state.label,
                "reason": reason,
            }))

    async def snapshot(self) -> Dict[str, PositionState]:
        async with self._lock:
            return dict(self._states)

    def __len__(self) -> int:
        return len(self._states)
