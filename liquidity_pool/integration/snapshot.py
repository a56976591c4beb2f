"""
Pool state snapshot encoding.

Goals:
- Deterministic JSON serialization of everything a pool keeps in its store.
- Round-trippable into a fresh `InMemoryStateStore`.
- A sha256 commitment over the canonical bytes (domain separated, versioned).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.pools import PoolState, PoolTokens
from ..state.rewards import RewardAccumulator, RewardConfig, UserRewardRecord
from ..state.store import USER_REWARD_TAG, DataKey, InMemoryStateStore, user_reward_key


POOL_SNAPSHOT_VERSION = 1

_TOKEN_FIELDS = ("token_a", "token_b", "share_token", "reward_token", "reward_funding_account")
_POOL_STATE_FIELDS = ("reserve_a", "reserve_b", "total_shares")
_REWARD_CONFIG_FIELDS = ("rate_per_second", "expiration_time")
_ACCUMULATOR_FIELDS = ("update_sequence", "accumulated_per_share", "last_settled_time")
_USER_FIELDS = ("last_seen_sequence", "accumulated_per_share_snapshot", "claimable_balance")


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be an object")
    return value


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Deterministic, versioned snapshot of one pool's stored state.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_from_store(store: InMemoryStateStore, *, version: int = POOL_SNAPSHOT_VERSION) -> PoolSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    tokens: PoolTokens = store.get(DataKey.TOKENS)
    state: PoolState = store.get(DataKey.POOL_STATE)
    config: RewardConfig = store.get(DataKey.REWARD_CONFIG)
    acc: RewardAccumulator = store.get(DataKey.REWARD_ACCUMULATOR)

    users: List[Dict[str, Any]] = []
    for key, record in store.items():
        if isinstance(key, tuple) and len(key) == 2 and key[0] == USER_REWARD_TAG:
            entry: Dict[str, Any] = {"address": key[1]}
            entry.update({f: int(getattr(record, f)) for f in _USER_FIELDS})
            users.append(entry)
    users.sort(key=lambda e: e["address"])

    data: Dict[str, Any] = {
        "version": int(version),
        "admin": store.get(DataKey.ADMIN),
        "tokens": {f: getattr(tokens, f) for f in _TOKEN_FIELDS},
        "pool_state": {f: int(getattr(state, f)) for f in _POOL_STATE_FIELDS},
        "reward_config": {f: int(getattr(config, f)) for f in _REWARD_CONFIG_FIELDS},
        "reward_accumulator": {f: int(getattr(acc, f)) for f in _ACCUMULATOR_FIELDS},
        "user_rewards": users,
    }
    return PoolSnapshot(version=version, data=data)


def restore_into_store(snapshot: Mapping[str, Any], store: InMemoryStateStore) -> None:
    """
    Write a snapshot's entries into `store`.

    Raises:
        TypeError / ValueError: On malformed snapshots (fail-closed, nothing is written)
    """
    snapshot = _require_mapping(snapshot, name="snapshot")

    version = snapshot.get("version", POOL_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != POOL_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    admin = _require_str(snapshot.get("admin"), name="admin")

    tokens_obj = _require_mapping(snapshot.get("tokens"), name="tokens")
    tokens = PoolTokens(**{f: _require_str(tokens_obj.get(f), name=f"tokens.{f}") for f in _TOKEN_FIELDS})

    state_obj = _require_mapping(snapshot.get("pool_state"), name="pool_state")
    state = PoolState(**{f: _require_int(state_obj.get(f, 0), name=f"pool_state.{f}") for f in _POOL_STATE_FIELDS})

    config_obj = _require_mapping(snapshot.get("reward_config"), name="reward_config")
    config = RewardConfig(
        **{f: _require_int(config_obj.get(f, 0), name=f"reward_config.{f}") for f in _REWARD_CONFIG_FIELDS}
    )

    acc_obj = _require_mapping(snapshot.get("reward_accumulator"), name="reward_accumulator")
    acc = RewardAccumulator(
        **{f: _require_int(acc_obj.get(f, 0), name=f"reward_accumulator.{f}") for f in _ACCUMULATOR_FIELDS}
    )

    user_entries = snapshot.get("user_rewards")
    if user_entries is None:
        user_entries = []
    if not isinstance(user_entries, list):
        raise TypeError("snapshot.user_rewards must be a list")
    users: Dict[str, UserRewardRecord] = {}
    for entry in user_entries:
        entry = _require_mapping(entry, name="user_rewards entry")
        address = _require_str(entry.get("address"), name="user_rewards.address")
        if address in users:
            raise ValueError(f"duplicate user_rewards entry: {address}")
        users[address] = UserRewardRecord(
            **{f: _require_int(entry.get(f, 0), name=f"user_rewards.{f}") for f in _USER_FIELDS}
        )

    store.put(DataKey.ADMIN, admin)
    store.put(DataKey.TOKENS, tokens)
    store.put(DataKey.POOL_STATE, state)
    store.put(DataKey.REWARD_CONFIG, config)
    store.put(DataKey.REWARD_ACCUMULATOR, acc)
    for address, record in users.items():
        store.put(user_reward_key(address), record)
