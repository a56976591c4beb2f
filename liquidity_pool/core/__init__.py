"""
Core pool algorithms
"""

from .errors import (
    PoolError,
    AlreadyInitialized,
    NotInitialized,
    InvalidOrdering,
    Unauthorized,
    InvalidAmount,
    SlippageExceeded,
    InvariantViolated,
    MinNotSatisfied,
    ArithmeticOverflow,
    DivisionByZero,
)
from .interfaces import Authorizer, Clock, Deployer, Environment, TokenLedger
from .swap import price_for_output, estimate_swap_out, verify_swap_invariant
from .issuance import deposit_amounts, shares_to_mint, withdraw_amounts
from .rewards import RewardsInfo, settle, settle_user, install_config, take_claimable
from .pool import LiquidityPool, PoolConfig

__all__ = [
    "PoolError",
    "AlreadyInitialized",
    "NotInitialized",
    "InvalidOrdering",
    "Unauthorized",
    "InvalidAmount",
    "SlippageExceeded",
    "InvariantViolated",
    "MinNotSatisfied",
    "ArithmeticOverflow",
    "DivisionByZero",
    "Authorizer",
    "Clock",
    "Deployer",
    "Environment",
    "TokenLedger",
    "price_for_output",
    "estimate_swap_out",
    "verify_swap_invariant",
    "deposit_amounts",
    "shares_to_mint",
    "withdraw_amounts",
    "RewardsInfo",
    "settle",
    "settle_user",
    "install_config",
    "take_claimable",
    "LiquidityPool",
    "PoolConfig",
]
