"""
Two-asset constant-product liquidity pool with time-weighted LP rewards.

Layers:
- `kernels.python`: integer-only math kernels (pure functions, typed results).
- `state`: pool data model and the key-value state store.
- `core`: swap / issuance / reward engines and the `LiquidityPool` instance.
- `integration`: in-memory host, token ledger, authorizers, snapshots, scenarios.
"""

__version__ = "0.1.0"
