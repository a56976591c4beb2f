"""
Invocation boundary: run one named pool operation for an external caller.

Mirrors a result-or-raise pair:
- `invoke_or_raise()` returns the operation's value or raises its error.
- `invoke()` never raises for operation failures; it returns an
  `InvocationResult` carrying the error kind instead.

Either way the host's transaction boundary has already discarded every
mutation of a failed operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from ..core.errors import PoolError
from ..core.pool import LiquidityPool
from ..state.balances import Address
from ..state.store import StateExpired
from .host import InMemoryHost
from .token import TokenError

logger = logging.getLogger(__name__)


POOL_OPERATIONS = (
    "initialize",
    "share_id",
    "deposit",
    "swap",
    "estimate_swap_out",
    "withdraw",
    "get_reserves",
    "get_pool_state",
    "version",
    "upgrade",
    "set_rewards_config",
    "get_rewards_info",
    "get_user_reward",
    "claim",
)


@dataclass(frozen=True)
class InvocationResult:
    ok: bool
    value: Any = None
    error_kind: Optional[str] = None
    error: Optional[str] = None


def invoke_or_raise(
    host: InMemoryHost,
    pool: LiquidityPool,
    operation: str,
    args: Optional[Mapping[str, Any]] = None,
    *,
    auth: Sequence[Address] = (),
) -> Any:
    """
    Call `pool.<operation>(**args)` inside one invocation scope.

    Raises:
        ValueError: If `operation` is not a public pool operation
        PoolError / TokenError / StateExpired: Whatever the operation raised
    """
    if operation not in POOL_OPERATIONS:
        raise ValueError(f"unknown pool operation: {operation}")
    method = getattr(pool, operation)
    with host.invocation(*auth):
        return method(**dict(args or {}))


def invoke(
    host: InMemoryHost,
    pool: LiquidityPool,
    operation: str,
    args: Optional[Mapping[str, Any]] = None,
    *,
    auth: Sequence[Address] = (),
) -> InvocationResult:
    try:
        value = invoke_or_raise(host, pool, operation, args, auth=auth)
    except PoolError as exc:
        logger.warning(f"{operation} rolled back: {exc.kind}: {exc}")
        return InvocationResult(ok=False, error_kind=exc.kind, error=str(exc))
    except TokenError as exc:
        logger.warning(f"{operation} rolled back: TokenError: {exc}")
        return InvocationResult(ok=False, error_kind="TokenError", error=str(exc))
    except StateExpired as exc:
        logger.warning(f"{operation} rolled back: StateExpired: {exc}")
        return InvocationResult(ok=False, error_kind="StateExpired", error=str(exc))
    return InvocationResult(ok=True, value=value)
