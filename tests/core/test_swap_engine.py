# [TESTER] v1

from __future__ import annotations

import pytest

from liquidity_pool.core.errors import ArithmeticOverflow, InvalidAmount, InvariantViolated, SlippageExceeded
from liquidity_pool.core.swap import (
    check_slippage,
    estimate_swap_out,
    out_amounts,
    price_for_output,
    verify_swap_invariant,
)
from liquidity_pool.state.balances import I128_MAX
from liquidity_pool.state.pools import PoolState


POOL = PoolState(reserve_a=1000, reserve_b=1000, total_shares=1000)


def test_price_for_output_both_directions() -> None:
    assert price_for_output(True, 100, POOL) == 112
    assert price_for_output(False, 100, POOL) == 112

    skewed = PoolState(reserve_a=1000, reserve_b=4000, total_shares=2000)
    # buying A sells B
    assert price_for_output(True, 100, skewed) == 4000 * 100 * 1000 // (900 * 997) + 1
    assert estimate_swap_out(True, 100, skewed) == price_for_output(True, 100, skewed)


@pytest.mark.parametrize("out", [1000, 1001])
def test_price_for_output_rejects_draining(out: int) -> None:
    with pytest.raises(InvalidAmount, match="buy-side reserve"):
        price_for_output(True, out, POOL)


def test_price_for_output_rejects_non_positive() -> None:
    with pytest.raises(InvalidAmount):
        price_for_output(True, 0, POOL)


def test_price_for_output_overflow() -> None:
    huge = PoolState(reserve_a=I128_MAX, reserve_b=I128_MAX, total_shares=1)
    with pytest.raises(ArithmeticOverflow):
        price_for_output(True, I128_MAX - 1, huge)


def test_check_slippage() -> None:
    check_slippage(112, 112)
    with pytest.raises(SlippageExceeded, match="in amount is over max") as exc_info:
        check_slippage(112, 111)
    assert exc_info.value.kind == "SlippageExceeded"


def test_out_amounts() -> None:
    assert out_amounts(True, 7) == (7, 0)
    assert out_amounts(False, 7) == (0, 7)


def test_verify_swap_invariant_returns_post_trade_reserves() -> None:
    new_state = verify_swap_invariant(POOL, 1000, 1112, 100, 0)
    assert new_state.reserves == (900, 1112)
    assert new_state.total_shares == 1000


def test_verify_swap_invariant_rejects_underpayment() -> None:
    with pytest.raises(InvariantViolated):
        verify_swap_invariant(POOL, 1000, 1111, 100, 0)
