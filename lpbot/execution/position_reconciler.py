"""
PositionReconciler - per-pair decision state machine.

Consumes this cycle's snapshots and the remembered PositionState and returns
a Decision (commands + next state). No I/O, no clock, no randomness: the same
inputs always produce the same decision, which keeps re-running a failed
cycle safe.

Transitions, first match wins:
    1. no position                                -> create empty position, WAITING
    2. ONE_SIDED, rebalancing on, other token now
       worth more than the committed one          -> withdraw + re-add both tokens, BALANCED
    3. liquidity in range but away from active bin -> withdraw, WAITING
    4. out of range with liquidity                -> withdraw and close, WAITING
    5. out of range without liquidity             -> claim fees (if any) + close, NO_POSITION
    6. no liquidity                               -> placement sub-decision
    otherwise                                     -> no-op
"""

from __future__ import annotations

from typing import List, Sequence, Tuple, TYPE_CHECKING

from lpbot.config.config_validator import EMPTY_POSITION_BINS
from lpbot.core.types import (
    BinLiquidity,
    BinRange,
    BinSnapshot,
    PositionSnapshot,
    TokenSide,
    to_natural,
)
from lpbot.execution.commands import (
    AddLiquidity,
    ClaimFees,
    ClosePosition,
    CreateEmptyPosition,
    Decision,
    RemoveLiquidity,
)
from lpbot.execution.position_state import PositionState, PositionStatus

if TYPE_CHECKING:
    from lpbot.config.pair_config import PairConfig
    from lpbot.strategy.sizing import SizedAmounts


# === Derived predicates ===

def bins_with_liquidity(position: PositionSnapshot) -> List[BinLiquidity]:
    """Bins holding liquidity, including a fresh position's placeholder bin."""
    return [b for b in position.bins if b.has_liquidity]


def liquid_bin_ids(position: PositionSnapshot) -> Tuple[int, ...]:
    """Real bin ids holding tokens (placeholders excluded)."""
    return tuple(b.bin_id for b in position.bins if not b.is_placeholder and (b.x_amount > 0 or b.y_amount > 0))


def all_bin_ids(position: PositionSnapshot) -> Tuple[int, ...]:
    ids = tuple(b.bin_id for b in position.bins if not b.is_placeholder)
    if ids:
        return ids
    return tuple(range(position.lower_bin_id, position.upper_bin_id + 1))


def is_in_range(position: PositionSnapshot, active_bin_id: int) -> bool:
    """Strictly inside the position's bounds."""
    return position.lower_bin_id < active_bin_id < position.upper_bin_id


def has_active_liquidity(position: PositionSnapshot, active_bin_id: int) -> bool:
    ids = set(liquid_bin_ids(position))
    return bool(ids & {active_bin_id - 1, active_bin_id, active_bin_id + 1})


def position_values_in_y(position: PositionSnapshot, active_bin: BinSnapshot) -> Tuple[float, float]:
    """(X holdings valued in Y, Y holdings) in natural units."""
    total_x = to_natural(position.total_x_amount, active_bin.decimals_x) * active_bin.price_per_token
    total_y = to_natural(position.total_y_amount, active_bin.decimals_y)
    return total_x, total_y


class PositionReconciler:
    """
    Stateless decision engine; PositionState is passed in and returned.

    Thread-safety: no mutable state, safe to share across pair tasks.
    """

    def __init__(self, empty_position_bins: int = EMPTY_POSITION_BINS) -> None:
        self.empty_position_half_width = empty_position_bins // 2

    def reconcile(
        self,
        positions: Sequence[PositionSnapshot],
        active_bin: BinSnapshot,
        sized: "SizedAmounts",
        config: "PairConfig",
        state: PositionState,
    ) -> Decision:
        """
        Decide the next action for one pair.

        Args:
            positions: Live positions of the pair (only the first is managed)
            active_bin: Current active bin
            sized: Committable wallet amounts from SizingCalculator
            config: Pair configuration
            state: Remembered state of positions[0] (ignored when there is none)

        Returns:
            Decision
        """
        active_id = active_bin.bin_id

        # 1. No position
        if not positions:
            half = self.empty_position_half_width
            return Decision(
                reason="no_position",
                commands=(CreateEmptyPosition(BinRange.around(active_id, half, half)),),
                next_state=PositionState.waiting(),
            )

        position = positions[0]
        pid = position.position_id
        liquid = bins_with_liquidity(position)
        in_range = is_in_range(position, active_id)

        # 2. One-sided position the market has made imbalanced
        if (
            state.status is PositionStatus.ONE_SIDED
            and config.balance_out_position
            and liquid
        ):
            total_x_in_y, total_y = position_values_in_y(position, active_bin)
            committed, other = (
                (total_x_in_y, total_y) if state.side is TokenSide.X else (total_y, total_x_in_y)
            )
            if other > committed:
                half = (config.total_range_interval // 2) // 2
                return Decision(
                    reason="rebalance_one_sided",
                    position_id=pid,
                    commands=(
                        RemoveLiquidity(bin_ids=liquid_bin_ids(position), close_position=False),
                        AddLiquidity(
                            amount_x=to_natural(position.total_x_amount, active_bin.decimals_x),
                            amount_y=total_y,
                            bin_range=BinRange.around(active_id, half, half),
                            strategy_type=config.strategy_type,
                            imbalanced=True,
                        ),
                    ),
                    next_state=PositionState.balanced(),
                )

        # 3. Liquidity drifted away from the trading price
        if liquid and in_range and not has_active_liquidity(position, active_id):
            removable = liquid_bin_ids(position)
            if not removable:
                # Only the fresh-position marker; nothing to withdraw yet
                return Decision(reason="awaiting_first_deposit", position_id=pid)
            return Decision(
                reason="inactive_liquidity",
                position_id=pid,
                commands=(RemoveLiquidity(bin_ids=removable, close_position=False),),
                next_state=PositionState.waiting(),
            )

        # 4. Out of range, still holding liquidity
        if not in_range and liquid:
            return Decision(
                reason="out_of_range_withdraw",
                position_id=pid,
                commands=(RemoveLiquidity(bin_ids=all_bin_ids(position), close_position=True),),
                next_state=PositionState.waiting(),
            )

        # 5. Out of range and empty
        if not in_range:
            commands = (ClaimFees(), ClosePosition()) if position.has_unclaimed_fees else (ClosePosition(),)
            return Decision(
                reason="out_of_range_close",
                position_id=pid,
                commands=commands,
                next_state=PositionState.no_position(),
            )

        # 6. Empty position in range
        if not liquid:
            return self._place_liquidity(pid, active_bin, sized, config)

        return Decision(reason="hold", position_id=pid)

    def _place_liquidity(
        self,
        position_id: str,
        active_bin: BinSnapshot,
        sized: "SizedAmounts",
        config: "PairConfig",
    ) -> Decision:
        active_id = active_bin.bin_id
        half = config.total_range_interval // 2
        amount_x, amount_y = sized.amount_x, sized.amount_y

        if amount_x > 0 and amount_y <= config.min_reserve_y:
            return Decision(
                reason="place_x_only",
                position_id=position_id,
                commands=(AddLiquidity(
                    amount_x=amount_x,
                    amount_y=0.0,
                    bin_range=BinRange(active_id, active_id + half),
                    strategy_type=config.strategy_type,
                ),),
                next_state=PositionState.one_sided(TokenSide.X),
            )

        if amount_y > 0 and amount_x <= config.min_reserve_x:
            return Decision(
                reason="place_y_only",
                position_id=position_id,
                commands=(AddLiquidity(
                    amount_x=0.0,
                    amount_y=amount_y,
                    bin_range=BinRange(active_id - half, active_id),
                    strategy_type=config.strategy_type,
                ),),
                next_state=PositionState.one_sided(TokenSide.Y),
            )

        if amount_x > config.min_reserve_x and amount_y > config.min_reserve_y:
            # A side too thin to spread across every bin is dropped
            per_bin_cap = config.max_position_size_in_y / config.total_range_interval
            if per_bin_cap > amount_x * active_bin.price_per_token:
                amount_x = 0.0
            if per_bin_cap > amount_y:
                amount_y = 0.0
            if amount_x <= 0 and amount_y <= 0:
                return Decision(reason="placement_below_bin_cap", position_id=position_id)
            return Decision(
                reason="place_balanced",
                position_id=position_id,
                commands=(AddLiquidity(
                    amount_x=amount_x,
                    amount_y=amount_y,
                    bin_range=BinRange.around(active_id, half, half),
                    strategy_type=config.strategy_type,
                ),),
                next_state=PositionState.balanced(),
            )

        return Decision(reason="insufficient_balance", position_id=position_id)
