"""
Kernel layer.

Deterministic integer-only kernels used by the pool core. Each kernel is a
small set of pure functions with explicit rounding rules and typed results;
domain validation and error kinds live in `liquidity_pool.core`.
"""
