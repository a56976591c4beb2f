"""
Reward configuration, global accumulator and per-user reward records.

All three are immutable; the reward engine produces new values instead of
mutating stored ones.
"""

from __future__ import annotations

from dataclasses import dataclass


def _require_non_negative_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


@dataclass(frozen=True)
class RewardConfig:
    """Emission rate (reward units per second) active until `expiration_time`."""

    rate_per_second: int = 0
    expiration_time: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int("rate_per_second", self.rate_per_second)
        _require_non_negative_int("expiration_time", self.expiration_time)


@dataclass(frozen=True)
class RewardAccumulator:
    """
    Global reward-per-share accumulator.

    `accumulated_per_share` is fixed-point (see `reward_math_v1.ACC_SCALE`).
    """

    update_sequence: int = 0
    accumulated_per_share: int = 0
    last_settled_time: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int("update_sequence", self.update_sequence)
        _require_non_negative_int("accumulated_per_share", self.accumulated_per_share)
        _require_non_negative_int("last_settled_time", self.last_settled_time)


@dataclass(frozen=True)
class UserRewardRecord:
    """Per-address snapshot of the accumulator plus the unclaimed balance."""

    last_seen_sequence: int = 0
    accumulated_per_share_snapshot: int = 0
    claimable_balance: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int("last_seen_sequence", self.last_seen_sequence)
        _require_non_negative_int(
            "accumulated_per_share_snapshot", self.accumulated_per_share_snapshot
        )
        _require_non_negative_int("claimable_balance", self.claimable_balance)
