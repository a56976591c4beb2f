"""Guard helpers shared by the pool engines.

Each helper either returns the validated value or raises the matching
`PoolError` kind.
"""

from __future__ import annotations

from ..state.balances import fits_i128
from .errors import ArithmeticOverflow, InvalidAmount


def checked_i128(name: str, value: int) -> int:
    """Return `value` if it fits the signed 128-bit range, else raise ArithmeticOverflow."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int")
    if not fits_i128(value):
        raise ArithmeticOverflow(f"{name} does not fit in i128: {value}")
    return int(value)


def require_positive(name: str, value: int) -> int:
    value = checked_i128(name, value)
    if value <= 0:
        raise InvalidAmount(f"{name} must be positive: {value}")
    return value


def require_non_negative(name: str, value: int) -> int:
    value = checked_i128(name, value)
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative: {value}")
    return value
