"""
State management for the liquidity pool
"""

from .balances import Address, Amount, BalanceTable
from .pools import PoolState, PoolTokens
from .rewards import RewardAccumulator, RewardConfig, UserRewardRecord
from .store import DataKey, InMemoryStateStore, StateExpired, StateStore, user_reward_key

__all__ = [
    "Address",
    "Amount",
    "BalanceTable",
    "PoolState",
    "PoolTokens",
    "RewardAccumulator",
    "RewardConfig",
    "UserRewardRecord",
    "DataKey",
    "InMemoryStateStore",
    "StateExpired",
    "StateStore",
    "user_reward_key",
]
