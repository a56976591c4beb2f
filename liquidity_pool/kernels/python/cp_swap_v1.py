"""
Constant-product swap kernel (v1 semantics, 0.3% fee on the sold asset).

Exact-out pricing:
    sell_amount = floor(reserve_sell * amount_out * 1000 / ((reserve_buy - amount_out) * 997)) + 1

The trailing `+ 1` rounds in the pool's favour so the post-trade invariant
check can never fail from rounding alone.

Post-trade invariant (scaled by 1000 to avoid fractions), per side:
    delta  = balance - reserve - out
    factor = 1000 * reserve + (997 * delta if delta > 0 else 1000 * delta)
    accept iff factor_a * factor_b >= (1000 * reserve_a) * (1000 * reserve_b)

Surplus inbound tokens are credited at the fee-discounted weight; shortfalls
are charged at full weight.
"""

from __future__ import annotations

from dataclasses import dataclass


FEE_RESIDUE_NUMERATOR = 997
FEE_RESIDUE_DENOMINATOR = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class InvariantCheckResult:
    old_factor_a: int
    old_factor_b: int
    new_factor_a: int
    new_factor_b: int

    @property
    def old_product(self) -> int:
        return self.old_factor_a * self.old_factor_b

    @property
    def new_product(self) -> int:
        return self.new_factor_a * self.new_factor_b

    @property
    def holds(self) -> bool:
        return self.new_product >= self.old_product


def sell_amount_for_output(*, reserve_sell: int, reserve_buy: int, amount_out: int) -> int:
    """
    Input required to buy exactly `amount_out` of the buy-side asset.

    Raises ValueError if the requested output would drain or invert the pool.
    """
    for name, v in (
        ("reserve_sell", reserve_sell),
        ("reserve_buy", reserve_buy),
        ("amount_out", amount_out),
    ):
        _require_int(name, v)

    if reserve_sell < 0 or reserve_buy < 0:
        raise ValueError("reserves must be non-negative")
    if amount_out <= 0:
        raise ValueError("amount_out must be positive")
    if amount_out >= reserve_buy:
        raise ValueError(
            f"cannot drain full reserve: amount_out ({amount_out}) >= reserve_buy ({reserve_buy})"
        )

    numerator = reserve_sell * amount_out * FEE_RESIDUE_DENOMINATOR
    denominator = (reserve_buy - amount_out) * FEE_RESIDUE_NUMERATOR
    return numerator // denominator + 1


def invariant_factor(*, balance: int, reserve: int, amount_out: int) -> int:
    """Fee-adjusted invariant factor for one side of the pool (scaled by 1000)."""
    for name, v in (("balance", balance), ("reserve", reserve), ("amount_out", amount_out)):
        _require_int(name, v)

    delta = balance - reserve - amount_out
    if delta > 0:
        adjusted_delta = FEE_RESIDUE_NUMERATOR * delta
    else:
        adjusted_delta = FEE_RESIDUE_DENOMINATOR * delta
    return FEE_RESIDUE_DENOMINATOR * reserve + adjusted_delta


def check_invariant(
    *,
    reserve_a: int,
    reserve_b: int,
    balance_a: int,
    balance_b: int,
    out_a: int,
    out_b: int,
) -> InvariantCheckResult:
    """
    Compare the fee-adjusted product before and after a trade.

    `balance_*` are the pool's token balances after the inbound transfer and
    before the outbound one; `out_*` is the amount leaving on each side.
    """
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if out_a < 0 or out_b < 0:
        raise ValueError("out amounts must be non-negative")

    return InvariantCheckResult(
        old_factor_a=FEE_RESIDUE_DENOMINATOR * reserve_a,
        old_factor_b=FEE_RESIDUE_DENOMINATOR * reserve_b,
        new_factor_a=invariant_factor(balance=balance_a, reserve=reserve_a, amount_out=out_a),
        new_factor_b=invariant_factor(balance=balance_b, reserve=reserve_b, amount_out=out_b),
    )
