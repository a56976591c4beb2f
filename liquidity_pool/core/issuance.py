"""
Issuance engine: ratio-preserving deposits, share minting and proportional
withdrawals.
"""

from typing import Tuple

from ..kernels.python.lp_math_v1 import mint_shares, ratio_amounts, withdraw_amounts as _withdraw_amounts
from ..state.balances import Amount
from ..state.pools import PoolState
from .errors import DivisionByZero, InvalidAmount, MinNotSatisfied
from .guards import checked_i128, require_positive


def deposit_amounts(
    desired_a: Amount,
    min_a: Amount,
    desired_b: Amount,
    min_b: Amount,
    reserves: PoolState,
) -> Tuple[Amount, Amount]:
    """
    Choose deposit amounts consistent with the current reserve ratio.

    Bootstrap (both reserves zero): exactly (desired_a, desired_b).
    Otherwise the side that fits is used in full and the other side is
    derived from the ratio (floor). Both chosen amounts must be at least the
    caller's minimums.

    Raises:
        InvalidAmount: If a desired amount is not positive
        MinNotSatisfied: If a chosen amount falls below its minimum
        DivisionByZero: If exactly one reserve is zero
    """
    desired_a = require_positive("desired_a", desired_a)
    desired_b = require_positive("desired_b", desired_b)
    min_a = checked_i128("min_a", min_a)
    min_b = checked_i128("min_b", min_b)

    try:
        amounts = ratio_amounts(
            reserve_a=reserves.reserve_a,
            reserve_b=reserves.reserve_b,
            desired_a=desired_a,
            desired_b=desired_b,
        )
    except ZeroDivisionError as exc:
        raise DivisionByZero(str(exc)) from exc

    if amounts.amount_a < min_a:
        raise MinNotSatisfied(f"amount_a ({amounts.amount_a}) < min_a ({min_a})")
    if amounts.amount_b < min_b:
        raise MinNotSatisfied(f"amount_b ({amounts.amount_b}) < min_b ({min_b})")

    return amounts.amount_a, amounts.amount_b


def shares_to_mint(balance_a: Amount, balance_b: Amount, reserves: PoolState) -> Amount:
    """
    Shares owed for the tokens that landed in the pool since the last update.

    `reserves` is the pre-deposit pool state (including its share supply).

    Raises:
        InvalidAmount: If the deposit is too small to mint any share
    """
    result = mint_shares(
        balance_a=balance_a,
        balance_b=balance_b,
        reserve_a=reserves.reserve_a,
        reserve_b=reserves.reserve_b,
        total_shares=reserves.total_shares,
    )
    if result.minted <= 0:
        raise InvalidAmount(f"deposit too small: would mint {result.minted} shares")
    return checked_i128("minted_shares", result.minted)


def withdraw_amounts(
    balance_a: Amount,
    balance_b: Amount,
    balance_shares: Amount,
    total_shares: Amount,
    min_a: Amount,
    min_b: Amount,
) -> Tuple[Amount, Amount]:
    """
    Proportional payout for the shares the pool currently holds.

    Raises:
        MinNotSatisfied: If either payout is below its minimum
        DivisionByZero: If there are no outstanding shares
    """
    if total_shares <= 0:
        raise DivisionByZero("no outstanding shares")
    try:
        result = _withdraw_amounts(
            balance_a=balance_a,
            balance_b=balance_b,
            balance_shares=balance_shares,
            total_shares=total_shares,
        )
    except ValueError as exc:
        raise InvalidAmount(str(exc)) from exc

    if result.amount_a < min_a or result.amount_b < min_b:
        raise MinNotSatisfied(
            f"min not satisfied: ({result.amount_a}, {result.amount_b}) < ({min_a}, {min_b})"
        )
    return result.amount_a, result.amount_b
