# [TESTER] v1

from __future__ import annotations

import pytest

from liquidity_pool.core.errors import InvalidAmount
from liquidity_pool.core.rewards import (
    init_reward_state,
    install_config,
    rewards_info,
    settle,
    settle_user,
    take_claimable,
)
from liquidity_pool.kernels.python.reward_math_v1 import ACC_SCALE
from liquidity_pool.state.rewards import RewardAccumulator, RewardConfig, UserRewardRecord


def test_settle_advances_sequence_only_when_time_passes() -> None:
    config, acc = init_reward_state()
    assert settle(acc, config, 100, 0) is acc

    config = RewardConfig(rate_per_second=10, expiration_time=1000)
    settled = settle(acc, config, 1000, 100)
    assert settled.update_sequence == 1
    assert settled.last_settled_time == 100
    assert settled.accumulated_per_share == ACC_SCALE

    assert settle(settled, config, 1000, 100) is settled


def test_install_config_settles_at_old_rate_first() -> None:
    old = RewardConfig(rate_per_second=10, expiration_time=1000)
    acc = RewardAccumulator(last_settled_time=0)
    config, settled = install_config(acc, old, 1000, 100, expiration_time=300, total_amount=2000)
    assert config == RewardConfig(rate_per_second=10, expiration_time=300)
    assert settled.accumulated_per_share == ACC_SCALE
    assert settled.last_settled_time == 100


def test_install_config_after_expiry_does_not_backpay() -> None:
    old = RewardConfig(rate_per_second=10, expiration_time=100)
    acc = RewardAccumulator(last_settled_time=50)
    config, settled = install_config(acc, old, 10, 500, expiration_time=600, total_amount=100)
    # settled up to the old expiration, then jumped to now
    assert settled.last_settled_time == 500
    assert settled.accumulated_per_share == 50 * 10 * ACC_SCALE // 10

    later = settle(settled, config, 10, 510)
    assert later.accumulated_per_share - settled.accumulated_per_share == 10 * 1 * ACC_SCALE // 10


@pytest.mark.parametrize(
    "expiration_time,total_amount",
    [(100, 10), (99, 10), (200, -1)],
)
def test_install_config_rejects_bad_inputs(expiration_time: int, total_amount: int) -> None:
    config, acc = init_reward_state()
    with pytest.raises(InvalidAmount):
        install_config(acc, config, 0, 100, expiration_time=expiration_time, total_amount=total_amount)


def test_settle_user_and_take_claimable() -> None:
    acc = RewardAccumulator(update_sequence=3, accumulated_per_share=2 * ACC_SCALE, last_settled_time=10)
    record = settle_user(UserRewardRecord(accumulated_per_share_snapshot=ACC_SCALE), acc, 7)
    assert record.claimable_balance == 7
    assert record.last_seen_sequence == 3
    assert record.accumulated_per_share_snapshot == 2 * ACC_SCALE

    # settling again at the same accumulator earns nothing more
    assert settle_user(record, acc, 7).claimable_balance == 7

    cleared, amount = take_claimable(record)
    assert amount == 7
    assert cleared.claimable_balance == 0
    assert cleared.accumulated_per_share_snapshot == record.accumulated_per_share_snapshot


def test_rewards_info_fields() -> None:
    info = rewards_info(
        RewardConfig(rate_per_second=1, expiration_time=2),
        RewardAccumulator(update_sequence=3, accumulated_per_share=4, last_settled_time=5),
        UserRewardRecord(last_seen_sequence=6, accumulated_per_share_snapshot=4, claimable_balance=8),
    ).to_dict()
    assert info == {
        "rate_per_second": 1,
        "expiration_time": 2,
        "accumulated_per_share": 4,
        "last_settled_time": 5,
        "update_sequence": 3,
        "user_accumulated_per_share": 4,
        "user_last_seen_sequence": 6,
        "claimable": 8,
    }
