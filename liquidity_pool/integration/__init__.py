"""
Host integration layer: in-memory collaborators, invocation boundary,
snapshots and scenario runs.
"""

from .auth import BlsInvocationAuthorizer, GrantAuthorizer
from .config import HostSettings, config_from_env
from .host import InMemoryHost, ManualClock
from .invoke import InvocationResult, invoke, invoke_or_raise
from .snapshot import PoolSnapshot, restore_into_store, snapshot_from_store
from .token import Token, TokenError, TokenMetadata

__all__ = [
    "BlsInvocationAuthorizer",
    "GrantAuthorizer",
    "HostSettings",
    "config_from_env",
    "InMemoryHost",
    "ManualClock",
    "InvocationResult",
    "invoke",
    "invoke_or_raise",
    "PoolSnapshot",
    "restore_into_store",
    "snapshot_from_store",
    "Token",
    "TokenError",
    "TokenMetadata",
]
