"""
Address/amount types and a deterministic balance table.

Amounts are arbitrary-precision Python ints, but every amount that is stored
or returned by the pool must fit the signed 128-bit range used on-chain.
"""

from typing import Dict


# Type aliases
Address = str  # contract or account address (opaque, totally ordered)
Amount = int  # signed 128-bit range integer in the asset's smallest unit

I128_MIN = -(1 << 127)
I128_MAX = (1 << 127) - 1


def fits_i128(value: int) -> bool:
    return I128_MIN <= value <= I128_MAX


def require_i128(name: str, value: int) -> int:
    """
    Validate that `value` is a plain int inside the signed 128-bit range.

    Raises:
        TypeError: If value is not an int (bools are rejected)
        OverflowError: If value is outside [I128_MIN, I128_MAX]
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not fits_i128(value):
        raise OverflowError(f"{name} does not fit in i128: {value}")
    return int(value)


class BalanceTable:
    """
    Holder -> amount map for a single token.

    Holders with a zero balance are dropped, so two tables with the same
    balances compare equal through `get_all_balances()`.
    """

    def __init__(self) -> None:
        self._balances: Dict[Address, Amount] = {}

    def get(self, address: Address) -> Amount:
        return self._balances.get(address, 0)

    def set(self, address: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"{address} balance would be negative: {amount}")
        if amount:
            self._balances[address] = amount
        else:
            self._balances.pop(address, None)

    def add(self, address: Address, delta: int) -> None:
        """Apply a signed delta; the result must stay non-negative."""
        self.set(address, self.get(address) + delta)

    def subtract(self, address: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"cannot subtract a negative amount: {amount}")
        self.add(address, -amount)

    def get_all_balances(self) -> Dict[Address, Amount]:
        return dict(self._balances)

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable(holders={len(self._balances)})"
