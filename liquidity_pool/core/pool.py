"""
Liquidity pool instance (functional core wired to its collaborators).

Every state-changing operation follows the same order:
1. Check caller authorization (injected capability).
2. Settle the global reward accumulator, then the caller's reward record.
3. Apply the primary effect (pricing / issuance) against the reserves.
4. Move funds through the external token ledgers.

Steps 2-4 run inside `Environment.atomic()`: any raised error discards every
mutation made by the operation, including token transfers. Each atomic block
starts by extending the instance entries, and every settled user record is
extended too, so a pool in use never loses its storage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from ..state.balances import Address, Amount
from ..state.pools import PoolState, PoolTokens
from ..state.rewards import RewardAccumulator, RewardConfig, UserRewardRecord
from ..state.store import INSTANCE_KEYS, DataKey, user_reward_key
from . import issuance, rewards, swap as swap_engine
from .errors import AlreadyInitialized, InvalidOrdering, NotInitialized, Unauthorized
from .guards import checked_i128, require_positive
from .interfaces import Environment, TokenLedger

logger = logging.getLogger(__name__)

CONTRACT_VERSION = 1
DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class PoolConfig:
    """Runtime config for a pool instance."""

    share_decimals: int = 7
    share_name: str = "Pool Share Token"
    share_symbol: str = "POOL"
    # Lifetimes (seconds) the pool extends its storage entries by.
    instance_ttl: int = 30 * DAY_SECONDS
    user_ttl: int = 30 * DAY_SECONDS
    contract_version: int = CONTRACT_VERSION

    def __post_init__(self) -> None:
        if not (0 <= self.share_decimals <= 18):
            raise ValueError(f"share_decimals must be in [0, 18]: {self.share_decimals}")
        if not self.share_name or not self.share_symbol:
            raise ValueError("share_name and share_symbol must be non-empty")
        if self.instance_ttl < 0 or self.user_ttl < 0:
            raise ValueError("ttls must be non-negative")
        if self.contract_version <= 0:
            raise ValueError("contract_version must be positive")


class LiquidityPool:
    """
    Constant-product AMM with a 0.3% swap fee and time-weighted LP rewards.

    The instance holds no state of its own: everything lives in
    `env.store` and in the token ledgers reachable through `env.token()`.
    """

    def __init__(self, address: Address, env: Environment, config: PoolConfig = PoolConfig()) -> None:
        self.address = address
        self._env = env
        self.config = config

    def __repr__(self) -> str:
        return f"LiquidityPool(address={self.address[:18]}...)"

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self._env.store.exists(DataKey.ADMIN):
            raise NotInitialized("pool is not initialized")

    def _tokens(self) -> PoolTokens:
        return self._env.store.get(DataKey.TOKENS)

    def _token(self, address: Address) -> TokenLedger:
        return self._env.token(address)

    def _pool_state(self) -> PoolState:
        return self._env.store.get(DataKey.POOL_STATE)

    def _reward_config(self) -> RewardConfig:
        return self._env.store.get(DataKey.REWARD_CONFIG)

    def _reward_accumulator(self) -> RewardAccumulator:
        return self._env.store.get(DataKey.REWARD_ACCUMULATOR)

    def _user_record(self, user: Address) -> UserRewardRecord:
        return self._env.store.get_or(user_reward_key(user), UserRewardRecord())

    def _share_balance(self, user: Address) -> Amount:
        return self._token(self._tokens().share_token).balance_of(user)

    def _balances(self) -> Tuple[Amount, Amount]:
        tokens = self._tokens()
        return (
            self._token(tokens.token_a).balance_of(self.address),
            self._token(tokens.token_b).balance_of(self.address),
        )

    def _bump_instance(self) -> None:
        """Extend every instance entry, restoring any that were archived."""
        for key in INSTANCE_KEYS:
            if self._env.store.exists(key):
                self._env.store.bump(key, self.config.instance_ttl)

    def _bump_user(self, user: Address) -> None:
        key = user_reward_key(user)
        if self._env.store.exists(key):
            self._env.store.bump(key, self.config.user_ttl)

    def _settle_rewards(self) -> RewardAccumulator:
        """Settle the global accumulator and persist it."""
        acc = self._reward_accumulator()
        settled = rewards.settle(
            acc,
            self._reward_config(),
            self._pool_state().total_shares,
            self._env.clock.now(),
        )
        if settled != acc:
            self._env.store.put(DataKey.REWARD_ACCUMULATOR, settled)
        return settled

    def _settle_user(self, user: Address, acc: RewardAccumulator) -> UserRewardRecord:
        """Settle `user` against an already-settled accumulator and persist the record."""
        self._bump_user(user)
        record = rewards.settle_user(self._user_record(user), acc, self._share_balance(user))
        self._env.store.put(user_reward_key(user), record)
        self._bump_user(user)
        return record

    def _preview_user(self, user: Address) -> Tuple[RewardConfig, RewardAccumulator, UserRewardRecord]:
        """Settle transient copies of the accumulator and the user's record."""
        config = self._reward_config()
        acc = rewards.settle(
            self._reward_accumulator(),
            config,
            self._pool_state().total_shares,
            self._env.clock.now(),
        )
        record = rewards.settle_user(self._user_record(user), acc, self._share_balance(user))
        return config, acc, record

    def _sync_total_shares(self, state: PoolState) -> PoolState:
        supply = self._token(self._tokens().share_token).total_supply()
        return state.set_total_shares(checked_i128("total_shares", supply))

    # ------------------------------------------------------------------
    # Admin registry
    # ------------------------------------------------------------------

    def is_admin(self, address: Address) -> bool:
        return self._env.store.get_or(DataKey.ADMIN, None) == address

    def _require_admin(self, admin: Address) -> None:
        self._env.authorizer.require_authorized(admin)
        if not self.is_admin(admin):
            raise Unauthorized(f"{admin} is not the pool admin")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def initialize(
        self,
        admin: Address,
        code_reference: str,
        token_a: Address,
        token_b: Address,
        reward_token: Address,
        reward_funding_account: Address,
    ) -> None:
        """
        Record the pool's tokens and admin, create the pool-share token and
        zero the reserves and reward state.

        Raises:
            AlreadyInitialized: If called twice
            InvalidOrdering: Unless token_a < token_b
        """
        store = self._env.store
        if store.exists(DataKey.ADMIN):
            raise AlreadyInitialized("already initialized")
        if token_a >= token_b:
            raise InvalidOrdering(f"token_a must be less than token_b: {token_a} >= {token_b}")

        with self._env.atomic():
            share_token = self._env.deployer.deploy_token(
                code_reference=code_reference,
                salt=f"{token_a}:{token_b}",
                admin=self.address,
                decimals=self.config.share_decimals,
                name=self.config.share_name,
                symbol=self.config.share_symbol,
            )
            config, acc = rewards.init_reward_state()

            store.put(DataKey.ADMIN, admin)
            store.put(
                DataKey.TOKENS,
                PoolTokens(
                    token_a=token_a,
                    token_b=token_b,
                    share_token=share_token,
                    reward_token=reward_token,
                    reward_funding_account=reward_funding_account,
                ),
            )
            store.put(DataKey.POOL_STATE, PoolState())
            store.put(DataKey.REWARD_CONFIG, config)
            store.put(DataKey.REWARD_ACCUMULATOR, acc)
            self._bump_instance()

        logger.info(f"Initialized pool {self.address} for pair ({token_a}, {token_b}), share token {share_token}")

    def share_id(self) -> Address:
        """Address of the pool-share token."""
        self._require_initialized()
        return self._tokens().share_token

    def deposit(
        self,
        to: Address,
        desired_a: Amount,
        min_a: Amount,
        desired_b: Amount,
        min_b: Amount,
    ) -> Tuple[Amount, Amount]:
        """
        Deposit token_a and token_b from `to` and mint pool shares to `to`.

        The shares minted are derived from the difference between the stored
        reserves and the pool's actual balances after the transfer.

        Returns:
            Tuple of (amount_a, amount_b) actually deposited
        """
        self._require_initialized()
        self._env.authorizer.require_authorized(to)

        with self._env.atomic():
            self._bump_instance()
            acc = self._settle_rewards()
            self._settle_user(to, acc)

            state = self._pool_state()
            amount_a, amount_b = issuance.deposit_amounts(desired_a, min_a, desired_b, min_b, state)

            tokens = self._tokens()
            self._token(tokens.token_a).transfer_from(self.address, to, self.address, amount_a)
            self._token(tokens.token_b).transfer_from(self.address, to, self.address, amount_b)

            balance_a, balance_b = self._balances()
            minted = issuance.shares_to_mint(balance_a, balance_b, state)
            self._token(tokens.share_token).mint(to, minted)

            new_state = self._sync_total_shares(
                state.set_reserves(checked_i128("reserve_a", balance_a), checked_i128("reserve_b", balance_b))
            )
            self._env.store.put(DataKey.POOL_STATE, new_state)

        logger.info(f"Deposit by {to}: ({amount_a}, {amount_b}) minted {minted} shares")
        return amount_a, amount_b

    def swap(self, to: Address, buy_a: bool, out: Amount, in_max: Amount) -> Amount:
        """
        Buy exactly `out` of token_a (if `buy_a`) or token_b, paying at most
        `in_max` of the other token.

        Returns:
            The amount sold to the pool
        """
        self._require_initialized()
        self._env.authorizer.require_authorized(to)

        with self._env.atomic():
            self._bump_instance()
            acc = self._settle_rewards()
            if self._share_balance(to) > 0:
                self._settle_user(to, acc)

            state = self._pool_state()
            sell_amount = swap_engine.price_for_output(buy_a, out, state)
            swap_engine.check_slippage(sell_amount, in_max)

            tokens = self._tokens()
            sell_token, buy_token = tokens.sell_and_buy(buy_a)
            self._token(sell_token).transfer_from(self.address, to, self.address, sell_amount)

            balance_a, balance_b = self._balances()
            out_a, out_b = swap_engine.out_amounts(buy_a, out)
            new_state = swap_engine.verify_swap_invariant(state, balance_a, balance_b, out_a, out_b)

            self._token(buy_token).transfer(self.address, to, out)
            self._env.store.put(DataKey.POOL_STATE, new_state)

        logger.info(f"Swap by {to}: bought {out} of {'A' if buy_a else 'B'} for {sell_amount}")
        return sell_amount

    def estimate_swap_out(self, buy_a: bool, out: Amount) -> Amount:
        """Read-only quote of the input required to buy `out`."""
        self._require_initialized()
        return swap_engine.estimate_swap_out(buy_a, out, self._pool_state())

    def withdraw(
        self,
        to: Address,
        share_amount: Amount,
        min_a: Amount,
        min_b: Amount,
    ) -> Tuple[Amount, Amount]:
        """
        Redeem `share_amount` pool shares from `to` for token_a and token_b.

        Every share the pool holds is burned, including any residual balance
        sent to the pool earlier.

        Returns:
            Tuple of (amount_a, amount_b) paid out
        """
        self._require_initialized()
        self._env.authorizer.require_authorized(to)
        share_amount = require_positive("share_amount", share_amount)

        with self._env.atomic():
            self._bump_instance()
            acc = self._settle_rewards()
            self._settle_user(to, acc)

            tokens = self._tokens()
            share_token = self._token(tokens.share_token)
            share_token.transfer_from(self.address, to, self.address, share_amount)

            balance_a, balance_b = self._balances()
            balance_shares = share_token.balance_of(self.address)
            total_shares = share_token.total_supply()

            out_a, out_b = issuance.withdraw_amounts(
                balance_a, balance_b, balance_shares, total_shares, min_a, min_b
            )

            share_token.burn(self.address, balance_shares)
            self._token(tokens.token_a).transfer(self.address, to, out_a)
            self._token(tokens.token_b).transfer(self.address, to, out_b)

            state = self._pool_state().set_reserves(balance_a - out_a, balance_b - out_b)
            self._env.store.put(DataKey.POOL_STATE, self._sync_total_shares(state))

        logger.info(f"Withdraw by {to}: burned {balance_shares} shares for ({out_a}, {out_b})")
        return out_a, out_b

    def get_reserves(self) -> Tuple[Amount, Amount]:
        self._require_initialized()
        return self._pool_state().reserves

    def get_pool_state(self) -> PoolState:
        self._require_initialized()
        return self._pool_state()

    def version(self) -> int:
        return self.config.contract_version

    def upgrade(self, admin: Address, new_code_reference: str) -> None:
        """Replace the running code through the host's deployer (admin only)."""
        self._require_initialized()
        with self._env.atomic():
            self._bump_instance()
            self._require_admin(admin)
            self._env.deployer.update_code(self.address, new_code_reference)
        logger.info(f"Pool {self.address} upgraded to {new_code_reference}")

    def set_rewards_config(self, admin: Address, expiration_time: int, total_amount: Amount) -> None:
        """
        Emit `total_amount` evenly from now until `expiration_time` (admin only).

        Accrual up to now is settled at the previous rate first.
        """
        self._require_initialized()

        with self._env.atomic():
            self._bump_instance()
            self._require_admin(admin)
            config, acc = rewards.install_config(
                self._reward_accumulator(),
                self._reward_config(),
                self._pool_state().total_shares,
                self._env.clock.now(),
                expiration_time=expiration_time,
                total_amount=total_amount,
            )
            self._env.store.put(DataKey.REWARD_ACCUMULATOR, acc)
            self._env.store.put(DataKey.REWARD_CONFIG, config)

        logger.info(
            f"Rewards config set: rate_per_second={config.rate_per_second} expiration_time={config.expiration_time}"
        )

    def get_rewards_info(self, user: Address) -> Dict[str, int]:
        """Reward state for `user`, settled on transient copies only."""
        self._require_initialized()
        config, acc, record = self._preview_user(user)
        return rewards.rewards_info(config, acc, record).to_dict()

    def get_user_reward(self, user: Address) -> Amount:
        """Amount `user` could claim right now."""
        self._require_initialized()
        _config, _acc, record = self._preview_user(user)
        return record.claimable_balance

    def claim(self, user: Address) -> Amount:
        """
        Pay out the user's accrued rewards from the reward funding account.

        Returns:
            The amount paid (0 if nothing was owed)
        """
        self._require_initialized()
        self._env.authorizer.require_authorized(user)

        with self._env.atomic():
            self._bump_instance()
            acc = self._settle_rewards()
            record = self._settle_user(user, acc)
            cleared, amount = rewards.take_claimable(record)
            self._env.store.put(user_reward_key(user), cleared)

            if amount > 0:
                tokens = self._tokens()
                self._token(tokens.reward_token).transfer_from(
                    self.address, tokens.reward_funding_account, user, amount
                )

        logger.info(f"Claim by {user}: {amount}")
        return amount
