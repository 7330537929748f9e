"""
Tests for the PositionReconciler state machine.
"""
import pytest

from conftest import make_config, make_position
from lpbot.core.types import BinLiquidity, BinRange, BinSnapshot, TokenSide
from lpbot.execution.commands import (
    AddLiquidity,
    ClaimFees,
    ClosePosition,
    CreateEmptyPosition,
    RemoveLiquidity,
)
from lpbot.execution.position_reconciler import (
    PositionReconciler,
    bins_with_liquidity,
    has_active_liquidity,
    is_in_range,
    liquid_bin_ids,
)
from lpbot.execution.position_state import PositionState, PositionStatus
from lpbot.strategy.sizing import SizedAmounts

SOL = 10 ** 9
USDC = 10 ** 6
NOTHING = SizedAmounts(0.0, 0.0)


def active(bin_id=15, price=100.0):
    return BinSnapshot(bin_id=bin_id, price_per_token=price, decimals_x=9, decimals_y=6)


@pytest.fixture
def reconciler():
    return PositionReconciler()


class TestPredicates:

    def test_placeholder_counts_as_liquidity_but_not_removable(self):
        pos = make_position(bins=[BinLiquidity(15, 0, 0, is_placeholder=True), (16, 0, 0)])
        assert [b.bin_id for b in bins_with_liquidity(pos)] == [15]
        assert liquid_bin_ids(pos) == ()

    def test_in_range_is_strict(self):
        pos = make_position(lower=10, upper=20)
        assert is_in_range(pos, 15)
        assert not is_in_range(pos, 10)
        assert not is_in_range(pos, 20)

    def test_active_liquidity_includes_neighbours(self):
        pos = make_position(bins=[(14, 1, 0)])
        assert has_active_liquidity(pos, 15)
        assert has_active_liquidity(pos, 13)
        assert not has_active_liquidity(pos, 16)


class TestTransitions:

    def test_no_position_creates_empty_position(self, reconciler, config):
        decision = reconciler.reconcile([], active(15), NOTHING, config, PositionState.no_position())
        assert decision.commands == (CreateEmptyPosition(BinRange(15 - 34, 15 + 34)),)
        assert decision.next_state == PositionState.waiting()
        assert decision.commands[0].bin_range.width == 69

    def test_one_sided_x_rebalances_when_y_outweighs(self, reconciler, config):
        pos = make_position(
            bins=[(14, SOL, 0), (15, 0, 150 * USDC)],
            total_x=SOL,  # 1 SOL at 100 -> 100 in Y
            total_y=150 * USDC,
        )
        decision = reconciler.reconcile(
            [pos], active(15), NOTHING, config, PositionState.one_sided(TokenSide.X),
        )
        remove, add = decision.commands
        assert remove == RemoveLiquidity(bin_ids=(14, 15), close_position=False)
        assert isinstance(add, AddLiquidity)
        assert add.imbalanced
        assert add.label == "add_imbalanced"
        assert add.amount_x == pytest.approx(1.0)
        assert add.amount_y == pytest.approx(150.0)
        # total_range_interval 6 -> halved range of 3 bins around the active bin
        assert add.bin_range == BinRange(14, 16)
        assert add.strategy_type is config.strategy_type
        assert decision.next_state == PositionState.balanced()

    def test_one_sided_y_rebalances_when_x_outweighs(self, reconciler, config):
        pos = make_position(bins=[(15, 2 * SOL, 50 * USDC)], total_x=2 * SOL, total_y=50 * USDC)
        decision = reconciler.reconcile(
            [pos], active(15), NOTHING, config, PositionState.one_sided(TokenSide.Y),
        )
        assert decision.reason == "rebalance_one_sided"
        assert decision.next_state.status is PositionStatus.BALANCED

    def test_one_sided_holds_while_committed_side_dominates(self, reconciler, config):
        pos = make_position(bins=[(15, 2 * SOL, 50 * USDC)], total_x=2 * SOL, total_y=50 * USDC)
        decision = reconciler.reconcile(
            [pos], active(15), NOTHING, config, PositionState.one_sided(TokenSide.X),
        )
        assert decision.is_noop
        assert decision.next_state is None

    def test_rebalance_disabled(self, reconciler):
        cfg = make_config(balance_out_position=False)
        pos = make_position(bins=[(15, SOL, 150 * USDC)], total_x=SOL, total_y=150 * USDC)
        decision = reconciler.reconcile([pos], active(15), NOTHING, cfg, PositionState.one_sided(TokenSide.X))
        assert decision.is_noop

    def test_balanced_state_never_rebalances(self, reconciler, config):
        pos = make_position(bins=[(15, SOL, 150 * USDC)], total_x=SOL, total_y=150 * USDC)
        decision = reconciler.reconcile([pos], active(15), NOTHING, config, PositionState.balanced())
        assert decision.is_noop
        assert decision.reason == "hold"

    def test_drifted_liquidity_is_withdrawn(self, reconciler, config):
        pos = make_position(bins=[(11, SOL, 0), (12, 0, 0)], total_x=SOL)
        decision = reconciler.reconcile([pos], active(15), NOTHING, config, PositionState.balanced())
        assert decision.commands == (RemoveLiquidity(bin_ids=(11,), close_position=False),)
        assert decision.next_state == PositionState.waiting()

    def test_placeholder_only_waits(self, reconciler, config):
        pos = make_position(bins=[BinLiquidity(12, 0, 0, is_placeholder=True)])
        sized = SizedAmounts(3.0, 0.0)
        decision = reconciler.reconcile([pos], active(15), sized, config, PositionState.waiting())
        assert decision.is_noop
        assert decision.reason == "awaiting_first_deposit"

    def test_out_of_range_with_liquidity_withdraws_and_closes(self, reconciler, config):
        pos = make_position(bins=[(18, SOL, 0), (19, 0, 0), (20, SOL, 0)], total_x=2 * SOL)
        decision = reconciler.reconcile([pos], active(25), NOTHING, config, PositionState.one_sided(TokenSide.X))
        (remove,) = decision.commands
        assert remove.close_position
        assert remove.bin_ids == (18, 19, 20)
        assert remove.bps == 10_000
        assert decision.next_state == PositionState.waiting()

    def test_out_of_range_empty_claims_and_closes(self, reconciler, config):
        pos = make_position(lower=10, upper=20, fee_x=5, fee_y=0)
        decision = reconciler.reconcile([pos], active(25), NOTHING, config, PositionState.waiting())
        assert decision.commands == (ClaimFees(), ClosePosition())
        assert decision.next_state == PositionState.no_position()

    def test_out_of_range_without_fees_only_closes(self, reconciler, config):
        pos = make_position(lower=10, upper=20)
        decision = reconciler.reconcile([pos], active(20), NOTHING, config, PositionState.waiting())
        assert decision.commands == (ClosePosition(),)
        assert decision.next_state.status is PositionStatus.NO_POSITION

    def test_first_position_is_managed(self, reconciler, config):
        first = make_position(position_id="a", lower=10, upper=20)
        second = make_position(position_id="b", lower=0, upper=100)
        decision = reconciler.reconcile([first, second], active(25), NOTHING, config, PositionState.waiting())
        assert decision.position_id == "a"


class TestPlacement:

    def test_x_only(self, reconciler, config):
        pos = make_position()
        decision = reconciler.reconcile([pos], active(15), SizedAmounts(3.0, 0.0), config, PositionState.waiting())
        (add,) = decision.commands
        assert add == AddLiquidity(3.0, 0.0, BinRange(15, 18), config.strategy_type)
        assert decision.next_state == PositionState.one_sided(TokenSide.X)

    def test_y_only(self, reconciler, config):
        pos = make_position()
        decision = reconciler.reconcile([pos], active(15), SizedAmounts(0.0, 50.0), config, PositionState.waiting())
        (add,) = decision.commands
        assert add.bin_range == BinRange(12, 15)
        assert (add.amount_x, add.amount_y) == (0.0, 50.0)
        assert decision.next_state == PositionState.one_sided(TokenSide.Y)

    def test_balanced(self, reconciler):
        cfg = make_config(min_reserve_x=0.1, min_reserve_y=1, max_position_size_in_y=600)
        pos = make_position()
        decision = reconciler.reconcile([pos], active(15), SizedAmounts(2.0, 500.0), cfg, PositionState.waiting())
        (add,) = decision.commands
        assert add.bin_range == BinRange(12, 18)
        assert (add.amount_x, add.amount_y) == (2.0, 500.0)
        assert not add.imbalanced
        assert decision.next_state == PositionState.balanced()

    def test_thin_side_is_dropped(self, reconciler):
        # per-bin cap 600 / 6 = 100; X is worth only 50
        cfg = make_config(min_reserve_x=0.1, min_reserve_y=1, max_position_size_in_y=600)
        pos = make_position()
        decision = reconciler.reconcile([pos], active(15), SizedAmounts(0.5, 500.0), cfg, PositionState.waiting())
        (add,) = decision.commands
        assert add.amount_x == 0.0
        assert add.amount_y == 500.0
        assert decision.next_state == PositionState.balanced()

    def test_both_sides_too_thin(self, reconciler):
        cfg = make_config(min_reserve_x=0.1, min_reserve_y=1, max_position_size_in_y=6000)
        pos = make_position()
        decision = reconciler.reconcile([pos], active(15), SizedAmounts(0.5, 50.0), cfg, PositionState.waiting())
        assert decision.is_noop

    def test_nothing_to_place(self, reconciler, config):
        pos = make_position()
        decision = reconciler.reconcile([pos], active(15), NOTHING, config, PositionState.waiting())
        assert decision.is_noop
        assert decision.reason == "insufficient_balance"


class TestIdempotence:

    def test_unchanged_snapshot_stays_noop(self, reconciler, config):
        pos = make_position(bins=[(15, SOL, 10 * USDC)], total_x=SOL, total_y=10 * USDC)
        state = PositionState.balanced()
        first = reconciler.reconcile([pos], active(15), NOTHING, config, state)
        second = reconciler.reconcile([pos], active(15), NOTHING, config, first.next_state or state)
        assert first.is_noop and second.is_noop

    def test_same_inputs_same_decision(self, reconciler, config):
        pos = make_position(bins=[(11, SOL, 0)], total_x=SOL)
        a = reconciler.reconcile([pos], active(15), NOTHING, config, PositionState.balanced())
        b = reconciler.reconcile([pos], active(15), NOTHING, config, PositionState.balanced())
        assert a == b


class TestPositionState:

    def test_side_only_for_one_sided(self):
        with pytest.raises(ValueError):
            PositionState(PositionStatus.BALANCED, TokenSide.X)
        with pytest.raises(ValueError):
            PositionState(PositionStatus.ONE_SIDED)
