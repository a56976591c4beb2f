"""
Reward accrual engine and per-user reward ledger.

Pure state machine over immutable values, driven by calls rather than a
background clock:
- `settle()` brings the global accumulator up to `min(now, expiration_time)`.
- `settle_user()` credits a holder for the accumulator growth since their
  last snapshot.
- `install_config()` settles at the old rate before switching rates.

Callers must settle the global accumulator before settling any user and
before touching the share supply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from ..kernels.python.reward_math_v1 import accrue, rate_for_budget, user_reward_delta
from ..state.rewards import RewardAccumulator, RewardConfig, UserRewardRecord
from .errors import InvalidAmount
from .guards import checked_i128

logger = logging.getLogger(__name__)


def init_reward_state() -> Tuple[RewardConfig, RewardAccumulator]:
    """Zeroed config and accumulator, as installed by `initialize`."""
    return RewardConfig(), RewardAccumulator()


def settle(
    acc: RewardAccumulator,
    config: RewardConfig,
    total_shares: int,
    now: int,
) -> RewardAccumulator:
    """
    Bring the accumulator current.

    Time is consumed even when `total_shares == 0` so that shares added later
    never earn rewards for a period in which nobody held them.
    """
    res = accrue(
        last_settled_time=acc.last_settled_time,
        rate_per_second=config.rate_per_second,
        expiration_time=config.expiration_time,
        total_shares=total_shares,
        now=now,
    )
    if res.elapsed <= 0:
        return acc

    settled = RewardAccumulator(
        update_sequence=acc.update_sequence + 1,
        accumulated_per_share=acc.accumulated_per_share + res.increment,
        last_settled_time=res.period_end,
    )
    logger.debug(
        f"Settled rewards: elapsed={res.elapsed} increment={res.increment} "
        f"acc={settled.accumulated_per_share} seq={settled.update_sequence}"
    )
    return settled


def install_config(
    acc: RewardAccumulator,
    config: RewardConfig,
    total_shares: int,
    now: int,
    *,
    expiration_time: int,
    total_amount: int,
) -> Tuple[RewardConfig, RewardAccumulator]:
    """
    Settle at the current rate, then switch to a rate that spends `total_amount`
    evenly until `expiration_time`.

    Raises:
        InvalidAmount: If expiration_time <= now or total_amount is negative
    """
    total_amount = checked_i128("total_amount", total_amount)
    if total_amount < 0:
        raise InvalidAmount(f"total_amount must be non-negative: {total_amount}")
    if expiration_time <= now:
        raise InvalidAmount(f"expiration_time ({expiration_time}) must be after now ({now})")

    settled = settle(acc, config, total_shares, now)
    rate = rate_for_budget(total_amount=total_amount, now=now, expiration_time=expiration_time)
    new_config = RewardConfig(rate_per_second=rate, expiration_time=expiration_time)

    # Time between an old expiration and now is not paid at the new rate.
    if settled.last_settled_time < now:
        settled = RewardAccumulator(
            update_sequence=settled.update_sequence + 1,
            accumulated_per_share=settled.accumulated_per_share,
            last_settled_time=now,
        )
    return new_config, settled


def settle_user(
    record: UserRewardRecord,
    acc: RewardAccumulator,
    share_balance: int,
) -> UserRewardRecord:
    """Credit `share_balance` for the accumulator growth since the record's snapshot."""
    delta = user_reward_delta(
        share_balance=share_balance,
        accumulated_per_share=acc.accumulated_per_share,
        snapshot=record.accumulated_per_share_snapshot,
    )
    claimable = checked_i128("claimable_balance", record.claimable_balance + delta)
    return UserRewardRecord(
        last_seen_sequence=acc.update_sequence,
        accumulated_per_share_snapshot=acc.accumulated_per_share,
        claimable_balance=claimable,
    )


def take_claimable(record: UserRewardRecord) -> Tuple[UserRewardRecord, int]:
    """Zero the claimable balance and return the amount that was owed."""
    return (
        UserRewardRecord(
            last_seen_sequence=record.last_seen_sequence,
            accumulated_per_share_snapshot=record.accumulated_per_share_snapshot,
            claimable_balance=0,
        ),
        record.claimable_balance,
    )


@dataclass(frozen=True)
class RewardsInfo:
    """Read-only view of the reward state for one user."""

    rate_per_second: int
    expiration_time: int
    accumulated_per_share: int
    last_settled_time: int
    update_sequence: int
    user_accumulated_per_share: int
    user_last_seen_sequence: int
    claimable: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "rate_per_second": self.rate_per_second,
            "expiration_time": self.expiration_time,
            "accumulated_per_share": self.accumulated_per_share,
            "last_settled_time": self.last_settled_time,
            "update_sequence": self.update_sequence,
            "user_accumulated_per_share": self.user_accumulated_per_share,
            "user_last_seen_sequence": self.user_last_seen_sequence,
            "claimable": self.claimable,
        }


def rewards_info(
    config: RewardConfig,
    acc: RewardAccumulator,
    record: UserRewardRecord,
) -> RewardsInfo:
    return RewardsInfo(
        rate_per_second=config.rate_per_second,
        expiration_time=config.expiration_time,
        accumulated_per_share=acc.accumulated_per_share,
        last_settled_time=acc.last_settled_time,
        update_sequence=acc.update_sequence,
        user_accumulated_per_share=record.accumulated_per_share_snapshot,
        user_last_seen_sequence=record.last_seen_sequence,
        claimable=record.claimable_balance,
    )
