# [TESTER] v1

from __future__ import annotations

from typing import Tuple

import pytest

from liquidity_pool.core.errors import (
    AlreadyInitialized,
    InvalidAmount,
    InvalidOrdering,
    MinNotSatisfied,
    NotInitialized,
    SlippageExceeded,
    Unauthorized,
)
from liquidity_pool.core.pool import DAY_SECONDS, LiquidityPool, PoolConfig
from liquidity_pool.integration.host import InMemoryHost
from liquidity_pool.integration.token import TokenError
from liquidity_pool.state.store import INSTANCE_KEYS, DataKey, StateExpired, user_reward_key


ADMIN = "admin"
ALICE = "alice"
BOB = "bob"
TREASURY = "treasury"
TOKEN_A = "token_a"
TOKEN_B = "token_b"
REWARD = "reward"
FUNDS = 1_000_000


def _setup() -> Tuple[InMemoryHost, LiquidityPool]:
    host = InMemoryHost()
    pool = host.deploy_pool("liquidity_pool:v1", salt="test")
    for token in (TOKEN_A, TOKEN_B, REWARD):
        host.create_token(token)
    pool.initialize(ADMIN, "token:v1", TOKEN_A, TOKEN_B, REWARD, TREASURY)

    share = pool.share_id()
    for user in (ALICE, BOB):
        for token in (TOKEN_A, TOKEN_B):
            host.token(token).mint(user, FUNDS)
            host.token(token).approve(user, pool.address, FUNDS)
        host.token(share).approve(user, pool.address, FUNDS)
    host.token(REWARD).mint(TREASURY, FUNDS)
    host.token(REWARD).approve(TREASURY, pool.address, FUNDS)
    return host, pool


def _deposit(host: InMemoryHost, pool: LiquidityPool, user: str, a: int, b: int) -> Tuple[int, int]:
    with host.invocation(user):
        return pool.deposit(user, a, 0, b, 0)


def _set_rewards(host: InMemoryHost, pool: LiquidityPool, expiration_time: int, total_amount: int) -> None:
    with host.invocation(ADMIN):
        pool.set_rewards_config(ADMIN, expiration_time, total_amount)


class TestInitialize:
    def test_initialize_creates_share_token(self) -> None:
        host, pool = _setup()
        share = host.token(pool.share_id())
        assert share.metadata.decimals == 7
        assert share.metadata.name == "Pool Share Token"
        assert share.metadata.symbol == "POOL"
        assert share.admin == pool.address
        assert pool.get_reserves() == (0, 0)
        assert pool.is_admin(ADMIN)
        assert not pool.is_admin(ALICE)
        assert pool.version() == 1

    def test_initialize_twice_fails(self) -> None:
        _host, pool = _setup()
        with pytest.raises(AlreadyInitialized):
            pool.initialize(ADMIN, "token:v1", TOKEN_A, TOKEN_B, REWARD, TREASURY)

    @pytest.mark.parametrize("token_a,token_b", [(TOKEN_B, TOKEN_A), (TOKEN_A, TOKEN_A)])
    def test_initialize_rejects_bad_ordering(self, token_a: str, token_b: str) -> None:
        host = InMemoryHost()
        pool = host.deploy_pool("liquidity_pool:v1", salt="ordering")
        with pytest.raises(InvalidOrdering):
            pool.initialize(ADMIN, "token:v1", token_a, token_b, REWARD, TREASURY)
        with pytest.raises(NotInitialized):
            pool.get_reserves()

    def test_operations_before_initialize_fail(self) -> None:
        host = InMemoryHost()
        pool = host.deploy_pool("liquidity_pool:v1", salt="uninit")
        with pytest.raises(NotInitialized):
            pool.share_id()
        with host.invocation(ALICE), pytest.raises(NotInitialized):
            pool.deposit(ALICE, 1, 0, 1, 0)


class TestDeposit:
    def test_bootstrap_deposit_mints_sqrt(self) -> None:
        host, pool = _setup()
        assert _deposit(host, pool, ALICE, 100, 100) == (100, 100)
        assert host.token(pool.share_id()).balance_of(ALICE) == 100
        assert pool.get_reserves() == (100, 100)
        assert pool.get_pool_state().total_shares == 100

    def test_proportional_deposit(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        assert _deposit(host, pool, BOB, 500, 500) == (500, 500)
        assert host.token(pool.share_id()).balance_of(BOB) == 500
        assert pool.get_pool_state().total_shares == 1500
        assert pool.get_reserves() == (1500, 1500)

    def test_deposit_requires_authorization(self) -> None:
        host, pool = _setup()
        with host.invocation(BOB), pytest.raises(Unauthorized):
            pool.deposit(ALICE, 100, 0, 100, 0)

    def test_deposit_min_not_satisfied_rolls_back(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 2000)
        with host.invocation(BOB), pytest.raises(MinNotSatisfied):
            pool.deposit(BOB, 100, 0, 500, 201)
        assert host.token(TOKEN_A).balance_of(BOB) == FUNDS
        assert pool.get_reserves() == (1000, 2000)

    def test_failed_transfer_discards_every_mutation(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        host.clock.set(10)

        acc_before = host.store.get(DataKey.REWARD_ACCUMULATOR)
        host.token(TOKEN_B).approve(BOB, pool.address, 0)
        with host.invocation(BOB), pytest.raises(TokenError, match="allowance"):
            pool.deposit(BOB, 500, 0, 500, 0)

        # token_a moved before token_b failed; both are restored
        assert host.token(TOKEN_A).balance_of(BOB) == FUNDS
        assert host.token(TOKEN_A).allowance(BOB, pool.address) == FUNDS
        assert host.store.get(DataKey.REWARD_ACCUMULATOR) == acc_before
        assert not host.store.has(user_reward_key(BOB))
        assert pool.get_reserves() == (1000, 1000)

    def test_deposit_bumps_user_record(self) -> None:
        host, pool = _setup()
        host.clock.set(5)
        _deposit(host, pool, ALICE, 100, 100)
        assert host.store.live_until(user_reward_key(ALICE)) == 5 + PoolConfig().user_ttl


class TestSwap:
    def test_swap_prices_exact_output(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        assert pool.estimate_swap_out(True, 100) == 112

        with host.invocation(BOB):
            assert pool.swap(BOB, True, 100, 112) == 112
        assert host.token(TOKEN_A).balance_of(BOB) == FUNDS + 100
        assert host.token(TOKEN_B).balance_of(BOB) == FUNDS - 112
        assert pool.get_reserves() == (900, 1112)

    def test_swap_buying_b(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        with host.invocation(BOB):
            assert pool.swap(BOB, False, 100, 200) == 112
        assert pool.get_reserves() == (1112, 900)

    def test_swap_slippage_exceeded(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        with host.invocation(BOB), pytest.raises(SlippageExceeded):
            pool.swap(BOB, True, 100, 111)
        assert host.token(TOKEN_B).balance_of(BOB) == FUNDS
        assert pool.get_reserves() == (1000, 1000)

    @pytest.mark.parametrize("out", [1000, 5000])
    def test_swap_draining_output_fails_before_any_transfer(self, out: int) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        # any transfer attempt would raise TokenError
        host.token(TOKEN_B).approve(BOB, pool.address, 0)
        with host.invocation(BOB), pytest.raises(InvalidAmount):
            pool.swap(BOB, True, out, 10**12)
        with pytest.raises(InvalidAmount):
            pool.estimate_swap_out(True, out)

    def test_swap_settles_holder_record_only(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        host.clock.set(50)

        with host.invocation(BOB):
            pool.swap(BOB, True, 10, 100)
        assert not host.store.has(user_reward_key(BOB))

        with host.invocation(ALICE):
            pool.swap(ALICE, True, 10, 100)
        acc = host.store.get(DataKey.REWARD_ACCUMULATOR)
        record = host.store.get(user_reward_key(ALICE))
        assert record.last_seen_sequence == acc.update_sequence
        assert record.claimable_balance == 500


class TestWithdraw:
    def test_withdraw_is_proportional(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        with host.invocation(ALICE):
            assert pool.withdraw(ALICE, 400, 400, 400) == (400, 400)
        assert pool.get_reserves() == (600, 600)
        assert pool.get_pool_state().total_shares == 600
        assert host.token(pool.share_id()).balance_of(pool.address) == 0

    def test_withdraw_burns_residual_pool_shares(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        host.token(pool.share_id()).transfer(ALICE, pool.address, 100)
        with host.invocation(ALICE):
            assert pool.withdraw(ALICE, 100, 0, 0) == (200, 200)
        assert host.token(pool.share_id()).total_supply() == 800

    def test_withdraw_min_not_satisfied_rolls_back(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        with host.invocation(ALICE), pytest.raises(MinNotSatisfied):
            pool.withdraw(ALICE, 400, 401, 0)
        assert host.token(pool.share_id()).balance_of(ALICE) == 1000
        assert pool.get_reserves() == (1000, 1000)

    def test_withdraw_rejects_non_positive_share_amount(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        with host.invocation(ALICE), pytest.raises(InvalidAmount):
            pool.withdraw(ALICE, 0, 0, 0)


class TestRewards:
    def test_set_rewards_config_requires_admin(self) -> None:
        host, pool = _setup()
        with host.invocation(ALICE), pytest.raises(Unauthorized):
            pool.set_rewards_config(ALICE, 1000, 10)
        # authorized for admin but not signed by admin
        with host.invocation(ALICE), pytest.raises(Unauthorized):
            pool.set_rewards_config(ADMIN, 1000, 10)

    def test_claim_pays_reported_reward(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        host.clock.set(100)

        expected = pool.get_user_reward(ALICE)
        assert expected == 1000
        with host.invocation(ALICE):
            assert pool.claim(ALICE) == expected
        assert pool.get_user_reward(ALICE) == 0
        assert host.token(REWARD).balance_of(ALICE) == expected
        assert host.token(REWARD).balance_of(TREASURY) == FUNDS - expected

    def test_rewards_split_by_share_over_time(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        host.clock.set(100)
        _deposit(host, pool, BOB, 1000, 1000)
        host.clock.set(200)

        assert pool.get_user_reward(ALICE) == 1500
        assert pool.get_user_reward(BOB) == 500

    def test_rewards_stop_at_expiration(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 100, 1000)
        host.clock.set(5000)
        assert pool.get_user_reward(ALICE) == 1000

    def test_get_rewards_info_is_read_only(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        host.clock.set(100)

        acc_before = host.store.get(DataKey.REWARD_ACCUMULATOR)
        info = pool.get_rewards_info(ALICE)
        assert info["rate_per_second"] == 10
        assert info["expiration_time"] == 1000
        assert info["last_settled_time"] == 100
        assert info["claimable"] == 1000
        assert host.store.get(DataKey.REWARD_ACCUMULATOR) == acc_before

    def test_claim_with_nothing_owed(self) -> None:
        host, pool = _setup()
        with host.invocation(BOB):
            assert pool.claim(BOB) == 0
        assert host.token(REWARD).balance_of(BOB) == 0

    def test_claim_rolls_back_when_funding_is_short(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        host.clock.set(100)
        host.token(REWARD).approve(TREASURY, pool.address, 0)

        with host.invocation(ALICE), pytest.raises(TokenError):
            pool.claim(ALICE)
        assert pool.get_user_reward(ALICE) == 1000


class TestUpgrade:
    def test_admin_upgrade_replaces_code(self) -> None:
        host, pool = _setup()
        with host.invocation(ADMIN):
            pool.upgrade(ADMIN, "liquidity_pool:v2")
        assert host.code_of(pool.address) == "liquidity_pool:v2"

    def test_non_admin_upgrade_fails(self) -> None:
        host, pool = _setup()
        with host.invocation(ALICE), pytest.raises(Unauthorized):
            pool.upgrade(ALICE, "liquidity_pool:v2")
        assert host.code_of(pool.address) == "liquidity_pool:v1"


def _swap_daily(host: InMemoryHost, pool: LiquidityPool, days: int) -> None:
    for day in range(days):
        host.clock.advance(DAY_SECONDS)
        with host.invocation(BOB):
            pool.swap(BOB, day % 2 == 0, 1, 100)


class TestStorageLifetime:
    def test_active_pool_outlives_instance_ttl(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _swap_daily(host, pool, 31)
        assert host.clock.now() > PoolConfig().instance_ttl

        for key in INSTANCE_KEYS:
            assert host.store.live_until(key) == host.clock.now() + PoolConfig().instance_ttl
        with host.invocation(ALICE):
            out_a, out_b = pool.withdraw(ALICE, 1000, 0, 0)
        assert out_a > 0 and out_b > 0
        assert pool.get_pool_state().total_shares == 0

    def test_idle_pool_is_restored_by_next_operation(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        host.clock.advance(40 * DAY_SECONDS)

        with pytest.raises(StateExpired):
            pool.get_reserves()
        with host.invocation(ALICE):
            assert pool.withdraw(ALICE, 400, 0, 0) == (400, 400)
        assert pool.get_reserves() == (600, 600)

    def test_failed_call_does_not_restore_archived_pool(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        host.clock.advance(40 * DAY_SECONDS)

        with host.invocation(ALICE), pytest.raises(MinNotSatisfied):
            pool.withdraw(ALICE, 400, 401, 0)
        with pytest.raises(StateExpired):
            pool.get_reserves()

    def test_passive_holder_record_is_restored_on_claim(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        _set_rewards(host, pool, 1000, 10_000)
        _swap_daily(host, pool, 31)

        with pytest.raises(StateExpired):
            pool.get_user_reward(ALICE)
        with host.invocation(ALICE):
            assert pool.claim(ALICE) == 10_000
        assert host.store.live_until(user_reward_key(ALICE)) == host.clock.now() + PoolConfig().user_ttl
        assert pool.get_user_reward(ALICE) == 0

    def test_holder_swap_extends_own_record(self) -> None:
        host, pool = _setup()
        _deposit(host, pool, ALICE, 1000, 1000)
        host.clock.advance(10 * DAY_SECONDS)
        with host.invocation(ALICE):
            pool.swap(ALICE, True, 1, 100)
        assert host.store.live_until(user_reward_key(ALICE)) == host.clock.now() + PoolConfig().user_ttl

    def test_admin_call_extends_instance(self) -> None:
        host, pool = _setup()
        host.clock.advance(20 * DAY_SECONDS)
        with host.invocation(ADMIN):
            pool.upgrade(ADMIN, "liquidity_pool:v2")
        assert host.store.live_until(DataKey.ADMIN) == host.clock.now() + PoolConfig().instance_ttl
