"""
Liquidity math kernel (v1 semantics).

- Deposits are split to preserve the current reserve ratio (floor rounding).
- Bootstrap mint: floor(sqrt(balance_a * balance_b)), no locked liquidity.
- Follow-up mint: min of the two proportional supply estimates, which mints
  fewer shares for imbalanced balances than the larger side alone justifies.
- Withdrawals pay out floor(balance * shares / total_shares) per asset.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class RatioAmountsResult:
    amount_a: int
    amount_b: int
    refund_a: int
    refund_b: int


@dataclass(frozen=True)
class MintSharesResult:
    new_total_shares: int
    minted: int
    bootstrap: bool


@dataclass(frozen=True)
class WithdrawAmountsResult:
    amount_a: int
    amount_b: int


def ratio_amounts(
    *,
    reserve_a: int,
    reserve_b: int,
    desired_a: int,
    desired_b: int,
) -> RatioAmountsResult:
    """
    Compute ratio-preserving deposit amounts.

    For an empty pool (both reserves zero) the desired amounts are used as-is.
    Otherwise side A is used in full when the matching B amount fits within
    `desired_b`; failing that, side B is used in full.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("desired_a", desired_a),
        ("desired_b", desired_b),
    ):
        _require_int(name, v)

    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if desired_a <= 0 or desired_b <= 0:
        raise ValueError("desired amounts must be positive")

    if reserve_a == 0 and reserve_b == 0:
        return RatioAmountsResult(amount_a=desired_a, amount_b=desired_b, refund_a=0, refund_b=0)
    if reserve_a == 0 or reserve_b == 0:
        raise ZeroDivisionError("cannot preserve the ratio of a single-sided pool")

    amount_b_from_a = (desired_a * reserve_b) // reserve_a
    if amount_b_from_a <= desired_b:
        amount_a = desired_a
        amount_b = amount_b_from_a
    else:
        amount_a = (desired_b * reserve_a) // reserve_b
        amount_b = desired_b

    if amount_a > desired_a or amount_b > desired_b:
        raise AssertionError("ratio amounts exceed desired amounts")

    return RatioAmountsResult(
        amount_a=amount_a,
        amount_b=amount_b,
        refund_a=desired_a - amount_a,
        refund_b=desired_b - amount_b,
    )


def mint_shares(
    *,
    balance_a: int,
    balance_b: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> MintSharesResult:
    """
    Shares to mint after the deposit has landed in the pool.

    `balance_*` are the pool's post-deposit token balances, `reserve_*` the
    pre-deposit reserves and `total_shares` the pre-deposit share supply.
    """
    for name, v in (
        ("balance_a", balance_a),
        ("balance_b", balance_b),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)

    if balance_a < 0 or balance_b < 0:
        raise ValueError("balances must be non-negative")
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if total_shares < 0:
        raise ValueError("total_shares must be non-negative")

    if total_shares > 0 and reserve_a > 0 and reserve_b > 0:
        shares_a = (balance_a * total_shares) // reserve_a
        shares_b = (balance_b * total_shares) // reserve_b
        new_total = min(shares_a, shares_b)
        bootstrap = False
    else:
        new_total = math.isqrt(balance_a * balance_b)
        bootstrap = True

    return MintSharesResult(
        new_total_shares=new_total,
        minted=new_total - total_shares,
        bootstrap=bootstrap,
    )


def withdraw_amounts(
    *,
    balance_a: int,
    balance_b: int,
    balance_shares: int,
    total_shares: int,
) -> WithdrawAmountsResult:
    """Proportional payout for `balance_shares` out of `total_shares` (floor rounding)."""
    for name, v in (
        ("balance_a", balance_a),
        ("balance_b", balance_b),
        ("balance_shares", balance_shares),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)

    if balance_a < 0 or balance_b < 0:
        raise ValueError("balances must be non-negative")
    if total_shares <= 0:
        raise ValueError("total_shares must be positive")
    if balance_shares < 0:
        raise ValueError("balance_shares must be non-negative")
    if balance_shares > total_shares:
        raise ValueError("cannot redeem more than total_shares")

    return WithdrawAmountsResult(
        amount_a=(balance_a * balance_shares) // total_shares,
        amount_b=(balance_b * balance_shares) // total_shares,
    )
