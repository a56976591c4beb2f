"""
Time-weighted reward accrual kernel (v1 semantics).

Global accumulator (fixed point, ACC_SCALE):
    period_end = min(now, expiration_time)
    elapsed    = max(0, period_end - last_settled_time)
    increment  = elapsed * rate_per_second * ACC_SCALE // total_shares   (0 if total_shares == 0)

Per-user settlement:
    delta = share_balance * (accumulated_per_share - snapshot) // ACC_SCALE
"""

from __future__ import annotations

from dataclasses import dataclass


ACC_SCALE = 10**12


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class AccrualResult:
    period_end: int
    elapsed: int
    increment: int


def accrue(
    *,
    last_settled_time: int,
    rate_per_second: int,
    expiration_time: int,
    total_shares: int,
    now: int,
) -> AccrualResult:
    """
    Compute the accumulator increment for the period since the last settlement.

    Time past `expiration_time` earns nothing. With no outstanding shares the
    period is still consumed (`elapsed` is reported) but the increment is 0.
    """
    for name, v in (
        ("last_settled_time", last_settled_time),
        ("rate_per_second", rate_per_second),
        ("expiration_time", expiration_time),
        ("total_shares", total_shares),
        ("now", now),
    ):
        _require_int(name, v)

    if rate_per_second < 0:
        raise ValueError("rate_per_second must be non-negative")
    if total_shares < 0:
        raise ValueError("total_shares must be non-negative")

    period_end = min(now, expiration_time)
    elapsed = max(0, period_end - last_settled_time)
    if elapsed == 0 or total_shares == 0:
        return AccrualResult(period_end=period_end, elapsed=elapsed, increment=0)

    increment = (elapsed * rate_per_second * ACC_SCALE) // total_shares
    return AccrualResult(period_end=period_end, elapsed=elapsed, increment=increment)


def user_reward_delta(*, share_balance: int, accumulated_per_share: int, snapshot: int) -> int:
    """Reward earned by `share_balance` since the user's last snapshot."""
    for name, v in (
        ("share_balance", share_balance),
        ("accumulated_per_share", accumulated_per_share),
        ("snapshot", snapshot),
    ):
        _require_int(name, v)

    if share_balance < 0:
        raise ValueError("share_balance must be non-negative")
    if snapshot > accumulated_per_share:
        raise ValueError("snapshot is ahead of the accumulator")

    return (share_balance * (accumulated_per_share - snapshot)) // ACC_SCALE


def rate_for_budget(*, total_amount: int, now: int, expiration_time: int) -> int:
    """Emission rate that spends `total_amount` evenly until `expiration_time` (floor)."""
    for name, v in (("total_amount", total_amount), ("now", now), ("expiration_time", expiration_time)):
        _require_int(name, v)

    if total_amount < 0:
        raise ValueError("total_amount must be non-negative")
    if expiration_time <= now:
        raise ValueError("expiration_time must be in the future")
    return total_amount // (expiration_time - now)
