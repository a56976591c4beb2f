"""
Collaborator interfaces the pool core depends on.

The core only calls these; implementations live in the integration layer
(`liquidity_pool.integration`) or in the hosting platform.
"""

from __future__ import annotations

from typing import ContextManager

from ..state.balances import Address, Amount
from ..state.store import StateStore


class TokenLedger:
    """Fungible token ledger. Failures raise and abort the enclosing operation."""

    address: Address

    def balance_of(self, address: Address) -> Amount:
        raise NotImplementedError

    def total_supply(self) -> Amount:
        raise NotImplementedError

    def transfer(self, from_: Address, to: Address, amount: Amount) -> None:
        raise NotImplementedError

    def transfer_from(self, spender: Address, from_: Address, to: Address, amount: Amount) -> None:
        raise NotImplementedError

    def mint(self, to: Address, amount: Amount) -> None:
        raise NotImplementedError

    def burn(self, from_: Address, amount: Amount) -> None:
        raise NotImplementedError


class Authorizer:
    """Verifies that the current invocation may act on behalf of an address."""

    def require_authorized(self, address: Address) -> None:
        """Raise `Unauthorized` if the invocation is not authorized for `address`."""
        raise NotImplementedError

    def end_invocation(self) -> None:
        """Drop every authorization scoped to the current invocation."""

    def grant(self, *addresses: Address) -> None:
        """Authorize `addresses` for the current invocation on the host's word."""
        raise NotImplementedError


class Clock:
    """Ledger time source."""

    def now(self) -> int:
        raise NotImplementedError


class Deployer:
    """Contract deployment and code replacement facility."""

    def deploy_token(
        self,
        *,
        code_reference: str,
        salt: str,
        admin: Address,
        decimals: int,
        name: str,
        symbol: str,
    ) -> Address:
        raise NotImplementedError

    def update_code(self, contract: Address, code_reference: str) -> None:
        raise NotImplementedError


class Environment:
    """
    Everything a pool instance needs from its host.

    `atomic()` is the operation boundary: if the body raises, every mutation
    of the store and of all token ledgers made inside it is discarded.
    """

    store: StateStore
    clock: Clock
    authorizer: Authorizer
    deployer: Deployer

    def token(self, address: Address) -> TokenLedger:
        raise NotImplementedError

    def atomic(self) -> ContextManager[None]:
        raise NotImplementedError
