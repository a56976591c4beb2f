"""
Environment-variable configuration for hosts running a pool.

Recognized variables:
- LP_POOL_INSTANCE_TTL: seconds instance entries are extended by
- LP_POOL_USER_TTL: seconds user reward records are extended by
- LP_POOL_SHARE_DECIMALS: decimals of the pool-share token
- LP_POOL_CHAIN_ID: chain id bound into signed invocations
- LP_POOL_REQUIRE_SIGS: use BLS-signed invocations instead of host grants

Malformed values raise `ValueError` instead of silently falling back.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from ..core.pool import PoolConfig


DEFAULT_CHAIN_ID = "lpool-local"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class HostSettings:
    pool: PoolConfig = PoolConfig()
    chain_id: str = DEFAULT_CHAIN_ID
    require_signatures: bool = False


def _bool_env(env: Mapping[str, str], name: str, *, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return bool(default)
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _int_env(env: Mapping[str, str], name: str, default: int, *, lo: int, hi: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an int, got {raw!r}") from exc
    if not (lo <= v <= hi):
        raise ValueError(f"{name} must be in [{lo}, {hi}], got {v}")
    return v


def config_from_env(env: Optional[Mapping[str, str]] = None) -> HostSettings:
    """Build `HostSettings` from `env` (defaults to `os.environ`)."""
    env = os.environ if env is None else env
    base = PoolConfig()
    pool = replace(
        base,
        instance_ttl=_int_env(env, "LP_POOL_INSTANCE_TTL", base.instance_ttl, lo=0, hi=10 * 365 * 86400),
        user_ttl=_int_env(env, "LP_POOL_USER_TTL", base.user_ttl, lo=0, hi=10 * 365 * 86400),
        share_decimals=_int_env(env, "LP_POOL_SHARE_DECIMALS", base.share_decimals, lo=0, hi=18),
    )
    chain_id = (env.get("LP_POOL_CHAIN_ID") or "").strip() or DEFAULT_CHAIN_ID
    return HostSettings(
        pool=pool,
        chain_id=chain_id,
        require_signatures=_bool_env(env, "LP_POOL_REQUIRE_SIGS", default=False),
    )


def pool_config_from_mapping(overrides: Mapping[str, object], *, base: PoolConfig = PoolConfig()) -> PoolConfig:
    """
    Apply a mapping of `PoolConfig` field overrides (e.g. a scenario's `config:` section).

    Raises:
        ValueError: On unknown fields or invalid values
    """
    known = set(PoolConfig.__dataclass_fields__)
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"unknown pool config fields: {unknown}")
    return replace(base, **dict(overrides))
