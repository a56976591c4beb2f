"""
Reserve ledger for a two-asset pool.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from .balances import Address, Amount


def require_canonical_order(token_a: Address, token_b: Address) -> None:
    """
    Enforce `token_a < token_b`.

    A single canonical ordering prevents two pools for the same pair.
    """
    if token_a >= token_b:
        raise ValueError(f"Tokens must be in canonical order: {token_a} < {token_b}")


@dataclass(frozen=True)
class PoolTokens:
    """
    Addresses the pool interacts with.

    Attributes:
        token_a: First asset (must be < token_b)
        token_b: Second asset
        share_token: Pool-share token minted on deposit / burned on withdraw
        reward_token: Token paid out to liquidity providers
        reward_funding_account: Account the rewards are paid from
    """
    token_a: Address
    token_b: Address
    share_token: Address
    reward_token: Address
    reward_funding_account: Address

    def __post_init__(self) -> None:
        require_canonical_order(self.token_a, self.token_b)

    def sell_and_buy(self, buy_a: bool) -> Tuple[Address, Address]:
        """Return (sell_token, buy_token) for a swap direction."""
        if buy_a:
            return self.token_b, self.token_a
        return self.token_a, self.token_b


@dataclass(frozen=True)
class PoolState:
    """
    Reserve quantities and outstanding shares.

    Attributes:
        reserve_a: Reserve of token_a (smallest unit)
        reserve_b: Reserve of token_b (smallest unit)
        total_shares: Outstanding pool-share supply
    """
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    total_shares: Amount = 0

    def __post_init__(self) -> None:
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve_a}, {self.reserve_b})"
            )
        if self.total_shares < 0:
            raise ValueError(f"total_shares must be non-negative: {self.total_shares}")

    @property
    def reserves(self) -> Tuple[Amount, Amount]:
        return self.reserve_a, self.reserve_b

    def sell_and_buy_reserves(self, buy_a: bool) -> Tuple[Amount, Amount]:
        """Return (reserve_sell, reserve_buy) for a swap direction."""
        if buy_a:
            return self.reserve_b, self.reserve_a
        return self.reserve_a, self.reserve_b

    def set_reserves(self, reserve_a: Amount, reserve_b: Amount) -> "PoolState":
        return replace(self, reserve_a=reserve_a, reserve_b=reserve_b)

    def set_total_shares(self, total_shares: Amount) -> "PoolState":
        return replace(self, total_shares=total_shares)
