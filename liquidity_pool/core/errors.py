"""Error kinds raised by pool operations.

Every kind is fatal to the current operation: the enclosing transaction
boundary discards all mutations and the error surfaces to the caller. Nothing
is retried internally.
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for pool errors. `kind` is the stable name used by callers."""

    kind = "PoolError"


class AlreadyInitialized(PoolError):
    """Raised when `initialize` is called on an initialized pool."""

    kind = "AlreadyInitialized"


class NotInitialized(PoolError):
    """Raised when an operation runs before `initialize`."""

    kind = "NotInitialized"


class InvalidOrdering(PoolError):
    """Raised when token_a is not strictly less than token_b."""

    kind = "InvalidOrdering"


class Unauthorized(PoolError):
    """Raised when caller authorization or the admin check fails."""

    kind = "Unauthorized"


class InvalidAmount(PoolError):
    """Raised when an amount makes the pricing or issuance formula undefined."""

    kind = "InvalidAmount"


class SlippageExceeded(PoolError):
    """Raised when the required input exceeds the caller's maximum."""

    kind = "SlippageExceeded"

    def __init__(self, required: int, maximum: int) -> None:
        self.required = required
        self.maximum = maximum
        super().__init__(f"in amount is over max: {required} > {maximum}")


class InvariantViolated(PoolError):
    """Raised when the post-trade constant-product check fails."""

    kind = "InvariantViolated"


class MinNotSatisfied(PoolError):
    """Raised when a deposit/withdraw amount falls below the caller's minimum."""

    kind = "MinNotSatisfied"


class ArithmeticOverflow(PoolError):
    """Internal invariant failure: a value left the signed 128-bit range."""

    kind = "ArithmeticOverflow"


class DivisionByZero(PoolError):
    """Internal invariant failure: a formula hit a zero denominator."""

    kind = "DivisionByZero"
