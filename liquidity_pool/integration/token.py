"""
In-memory fungible token ledger.

Used as the token collaborator for local hosts, scenario runs and tests.
Balances are kept in a `BalanceTable`; allowances in a plain dict keyed by
(owner, spender).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.interfaces import TokenLedger
from ..state.balances import Address, Amount, BalanceTable, require_i128


class TokenError(Exception):
    """Raised when a token operation cannot be applied (insufficient balance/allowance, bad amount)."""


@dataclass(frozen=True)
class TokenMetadata:
    decimals: int
    name: str
    symbol: str


@dataclass(frozen=True)
class _TokenSnapshot:
    balances: Dict[Address, Amount]
    allowances: Dict[Tuple[Address, Address], Amount]
    total_supply: Amount


def _require_amount(name: str, amount: Amount) -> Amount:
    try:
        amount = require_i128(name, amount)
    except (TypeError, OverflowError) as exc:
        raise TokenError(str(exc)) from exc
    if amount < 0:
        raise TokenError(f"{name} must be non-negative: {amount}")
    return amount


class Token(TokenLedger):
    """
    Token ledger with an admin allowed to mint.

    `transfer_from(spender, from_, to, amount)` spends an allowance that
    `from_` granted to `spender` via `approve`.
    """

    def __init__(
        self,
        address: Address,
        *,
        admin: Optional[Address] = None,
        metadata: TokenMetadata = TokenMetadata(decimals=7, name="Token", symbol="TKN"),
    ) -> None:
        self.address = address
        self.admin = admin
        self.metadata = metadata
        self._balances = BalanceTable()
        self._allowances: Dict[Tuple[Address, Address], Amount] = {}
        self._total_supply: Amount = 0

    def __repr__(self) -> str:
        return f"Token({self.metadata.symbol}, supply={self._total_supply})"

    def balance_of(self, address: Address) -> Amount:
        return self._balances.get(address)

    def total_supply(self) -> Amount:
        return self._total_supply

    def allowance(self, owner: Address, spender: Address) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: Address, spender: Address, amount: Amount) -> None:
        self._allowances[(owner, spender)] = _require_amount("allowance", amount)

    def _move(self, from_: Address, to: Address, amount: Amount) -> None:
        available = self._balances.get(from_)
        if available < amount:
            raise TokenError(f"insufficient balance: {from_} has {available}, needs {amount}")
        self._balances.subtract(from_, amount)
        self._balances.add(to, amount)

    def transfer(self, from_: Address, to: Address, amount: Amount) -> None:
        amount = _require_amount("amount", amount)
        self._move(from_, to, amount)

    def transfer_from(self, spender: Address, from_: Address, to: Address, amount: Amount) -> None:
        amount = _require_amount("amount", amount)
        allowed = self.allowance(from_, spender)
        if allowed < amount:
            raise TokenError(f"insufficient allowance: {spender} may spend {allowed} of {from_}, needs {amount}")
        self._move(from_, to, amount)
        self._allowances[(from_, spender)] = allowed - amount

    def mint(self, to: Address, amount: Amount) -> None:
        amount = _require_amount("amount", amount)
        new_supply = self._total_supply + amount
        try:
            require_i128("total_supply", new_supply)
        except OverflowError as exc:
            raise TokenError(str(exc)) from exc
        self._balances.add(to, amount)
        self._total_supply = new_supply

    def burn(self, from_: Address, amount: Amount) -> None:
        amount = _require_amount("amount", amount)
        available = self._balances.get(from_)
        if available < amount:
            raise TokenError(f"insufficient balance to burn: {from_} has {available}, needs {amount}")
        self._balances.subtract(from_, amount)
        self._total_supply -= amount

    def snapshot(self) -> _TokenSnapshot:
        return _TokenSnapshot(
            balances=self._balances.get_all_balances(),
            allowances=dict(self._allowances),
            total_supply=self._total_supply,
        )

    def restore(self, snap: _TokenSnapshot) -> None:
        balances = BalanceTable()
        for address, amount in snap.balances.items():
            balances.set(address, amount)
        self._balances = balances
        self._allowances = dict(snap.allowances)
        self._total_supply = snap.total_supply
