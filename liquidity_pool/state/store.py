"""
Key-value state store with caller-managed lifetimes ("bump" semantics).

The pool only calls this interface; it never keeps state of its own. Every
entry has a `live_until` timestamp. Reading an entry whose lifetime lapsed
raises `StateExpired` rather than pretending the key is missing, so callers
cannot silently re-create archived data. Archived entries are kept and
`bump` brings them back to life.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterator, Mapping, Optional, Tuple


class StateExpired(Exception):
    """Raised when reading an entry whose TTL has lapsed."""

    def __init__(self, key: Hashable, live_until: int, now: int) -> None:
        self.key = key
        self.live_until = live_until
        self.now = now
        super().__init__(f"state entry {key!r} expired at {live_until} (now {now})")


class DataKey(Enum):
    """Instance-scoped keys."""
    ADMIN = "Admin"
    TOKENS = "Tokens"
    POOL_STATE = "PoolState"
    REWARD_CONFIG = "RewardConfig"
    REWARD_ACCUMULATOR = "RewardAccumulator"


INSTANCE_KEYS: Tuple[DataKey, ...] = tuple(DataKey)

USER_REWARD_TAG = "UserReward"


def user_reward_key(address: str) -> Tuple[str, str]:
    return (USER_REWARD_TAG, address)


class StateStore:
    """Interface for the persistent state store."""

    def get(self, key: Hashable) -> Any:
        raise NotImplementedError

    def get_or(self, key: Hashable, default: Any) -> Any:
        raise NotImplementedError

    def has(self, key: Hashable) -> bool:
        raise NotImplementedError

    def exists(self, key: Hashable) -> bool:
        raise NotImplementedError

    def put(self, key: Hashable, value: Any) -> None:
        raise NotImplementedError

    def bump(self, key: Hashable, ttl: int) -> None:
        raise NotImplementedError

    def snapshot(self) -> Any:
        raise NotImplementedError

    def restore(self, snap: Any) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class _Entry:
    value: Any
    live_until: int


class InMemoryStateStore(StateStore):
    """
    Dict-backed store.

    Values are expected to be immutable (frozen dataclasses, ints, strings);
    `snapshot()` is therefore a shallow copy of the entry map.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None, *, min_ttl: int = 0) -> None:
        if min_ttl < 0:
            raise ValueError(f"min_ttl must be non-negative: {min_ttl}")
        self._clock = clock or (lambda: 0)
        self._min_ttl = int(min_ttl)
        self._entries: Dict[Hashable, _Entry] = {}

    def _now(self) -> int:
        return int(self._clock())

    def _live_entry(self, key: Hashable) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._now()
        if entry.live_until < now:
            raise StateExpired(key, entry.live_until, now)
        return entry

    def get(self, key: Hashable) -> Any:
        entry = self._live_entry(key)
        if entry is None:
            raise KeyError(key)
        return entry.value

    def get_or(self, key: Hashable, default: Any) -> Any:
        entry = self._live_entry(key)
        return default if entry is None else entry.value

    def has(self, key: Hashable) -> bool:
        return self._live_entry(key) is not None

    def exists(self, key: Hashable) -> bool:
        """True if `key` was ever written, whether live or archived."""
        return key in self._entries

    def put(self, key: Hashable, value: Any) -> None:
        floor = self._now() + self._min_ttl
        existing = self._entries.get(key)
        live_until = floor if existing is None else max(existing.live_until, floor)
        self._entries[key] = _Entry(value=value, live_until=live_until)

    def bump(self, key: Hashable, ttl: int) -> None:
        """
        Extend the lifetime of `key` to at least `now + ttl`.

        An archived entry is restored with its last value.

        Raises:
            KeyError: If `key` was never written
        """
        if ttl < 0:
            raise ValueError(f"ttl must be non-negative: {ttl}")
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(key)
        target = self._now() + ttl
        if target > entry.live_until:
            self._entries[key] = _Entry(value=entry.value, live_until=target)

    def live_until(self, key: Hashable) -> int:
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(key)
        return entry.live_until

    def items(self) -> Iterator[Tuple[Hashable, Any]]:
        """Iterate over live entries (expired entries are skipped)."""
        now = self._now()
        for key, entry in list(self._entries.items()):
            if entry.live_until >= now:
                yield key, entry.value

    def snapshot(self) -> Mapping[Hashable, _Entry]:
        return dict(self._entries)

    def restore(self, snap: Mapping[Hashable, _Entry]) -> None:
        self._entries = dict(snap)

    def __repr__(self) -> str:
        return f"InMemoryStateStore({len(self._entries)} entries)"
