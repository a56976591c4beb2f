"""
Swap engine: exact-out pricing and the post-trade invariant check.

Pricing and invariant math live in `kernels/python/cp_swap_v1.py`; this
module validates inputs against the current reserves and maps failures onto
pool error kinds.
"""

from typing import Tuple

from ..kernels.python.cp_swap_v1 import check_invariant, sell_amount_for_output
from ..state.balances import Amount
from ..state.pools import PoolState
from .errors import InvalidAmount, InvariantViolated, SlippageExceeded
from .guards import checked_i128, require_non_negative, require_positive


def price_for_output(buy_a: bool, requested_out: Amount, reserves: PoolState) -> Amount:
    """
    Compute the input required to buy `requested_out` of the buy-side asset.

    If `buy_a` is true the swap buys token_a and sells token_b; otherwise it
    buys token_b and sells token_a.

    Raises:
        InvalidAmount: If requested_out is not positive or would drain the buy-side reserve
    """
    requested_out = require_positive("out", requested_out)
    reserve_sell, reserve_buy = reserves.sell_and_buy_reserves(buy_a)
    if requested_out >= reserve_buy:
        raise InvalidAmount(
            f"out ({requested_out}) must be less than the buy-side reserve ({reserve_buy})"
        )

    sell_amount = sell_amount_for_output(
        reserve_sell=reserve_sell,
        reserve_buy=reserve_buy,
        amount_out=requested_out,
    )
    return checked_i128("sell_amount", sell_amount)


def estimate_swap_out(buy_a: bool, out: Amount, reserves: PoolState) -> Amount:
    """Read-only quote: same formula as `price_for_output`, no slippage bound."""
    return price_for_output(buy_a, out, reserves)


def check_slippage(sell_amount: Amount, in_max: Amount) -> None:
    """Raise SlippageExceeded if the required input is above the caller's maximum."""
    if sell_amount > in_max:
        raise SlippageExceeded(sell_amount, in_max)


def out_amounts(buy_a: bool, out: Amount) -> Tuple[Amount, Amount]:
    """Split a swap output into (out_a, out_b)."""
    return (out, 0) if buy_a else (0, out)


def verify_swap_invariant(
    reserves: PoolState,
    balance_a: Amount,
    balance_b: Amount,
    out_a: Amount,
    out_b: Amount,
) -> PoolState:
    """
    Check the fee-adjusted constant product and return the post-trade reserves.

    `balance_*` are read after the inbound transfer; the outbound amounts are
    still in the pool at that point.

    Raises:
        InvariantViolated: If the fee-adjusted product would decrease
    """
    result = check_invariant(
        reserve_a=reserves.reserve_a,
        reserve_b=reserves.reserve_b,
        balance_a=balance_a,
        balance_b=balance_b,
        out_a=out_a,
        out_b=out_b,
    )
    if not result.holds:
        raise InvariantViolated(
            f"constant product invariant does not hold: {result.new_product} < {result.old_product}"
        )

    new_reserve_a = require_non_negative("reserve_a", balance_a - out_a)
    new_reserve_b = require_non_negative("reserve_b", balance_b - out_b)
    return reserves.set_reserves(new_reserve_a, new_reserve_b)
