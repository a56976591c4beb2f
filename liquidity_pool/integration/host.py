"""
In-memory host environment.

Provides every collaborator a `LiquidityPool` needs: ledger clock, state
store, authorizer, token registry with deterministic deployment, a
code-reference registry for upgrades, and the atomic transaction boundary.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from ..core.interfaces import Authorizer, Clock, Deployer, Environment
from ..core.pool import LiquidityPool, PoolConfig
from ..state.balances import Address
from ..state.canonical import derive_address
from ..state.store import InMemoryStateStore
from .auth import BlsInvocationAuthorizer, GrantAuthorizer
from .config import HostSettings
from .token import Token, TokenError, TokenMetadata

logger = logging.getLogger(__name__)

# Lifetime every freshly written entry gets before any explicit bump.
DEFAULT_ENTRY_TTL = 7 * 24 * 60 * 60


class ManualClock(Clock):
    """Ledger clock advanced explicitly by the host. Never moves backwards."""

    def __init__(self, now: int = 0) -> None:
        if now < 0:
            raise ValueError(f"now must be non-negative: {now}")
        self._now = int(now)

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        if now < self._now:
            raise ValueError(f"clock cannot move backwards: {now} < {self._now}")
        self._now = int(now)

    def advance(self, seconds: int) -> None:
        self.set(self._now + seconds)


@dataclass(frozen=True)
class _HostSnapshot:
    store: object
    tokens: Dict[Address, object]
    code: Dict[Address, str]


class InMemoryHost(Environment, Deployer):
    """
    Single-process host. The host is its own `Deployer`.

    `atomic()` snapshots the store, every token ledger and the code registry;
    if the body raises they are all restored (tokens created inside the block
    disappear). Nested `atomic()` blocks join the outermost one.
    """

    def __init__(
        self,
        *,
        clock: Optional[ManualClock] = None,
        authorizer: Optional[Authorizer] = None,
        settings: Optional[HostSettings] = None,
        min_ttl: int = DEFAULT_ENTRY_TTL,
    ) -> None:
        self.settings = settings or HostSettings()
        self.clock = clock or ManualClock()
        self.store = InMemoryStateStore(self.clock.now, min_ttl=min_ttl)
        if authorizer is None:
            if self.settings.require_signatures:
                authorizer = BlsInvocationAuthorizer(chain_id=self.settings.chain_id)
            else:
                authorizer = GrantAuthorizer()
        self.authorizer = authorizer
        self.deployer = self
        self._tokens: Dict[Address, Token] = {}
        self._code: Dict[Address, str] = {}
        self._depth = 0

    def __repr__(self) -> str:
        return f"InMemoryHost(now={self.clock.now()}, tokens={len(self._tokens)})"

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def create_token(
        self,
        address: Address,
        *,
        admin: Optional[Address] = None,
        metadata: Optional[TokenMetadata] = None,
    ) -> Token:
        if address in self._tokens:
            raise ValueError(f"token already exists: {address}")
        token = Token(address, admin=admin, metadata=metadata or TokenMetadata(7, address, address[:12].upper()))
        self._tokens[address] = token
        return token

    def token(self, address: Address) -> Token:
        token = self._tokens.get(address)
        if token is None:
            raise TokenError(f"unknown token: {address}")
        return token

    # ------------------------------------------------------------------
    # Deployer
    # ------------------------------------------------------------------

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
        address = derive_address("token", admin, salt)
        self.create_token(address, admin=admin, metadata=TokenMetadata(decimals=decimals, name=name, symbol=symbol))
        self._code[address] = code_reference
        logger.debug(f"Deployed token {address} ({symbol}) from {code_reference}")
        return address

    def update_code(self, contract: Address, code_reference: str) -> None:
        if contract not in self._code:
            raise ValueError(f"unknown contract: {contract}")
        if not code_reference:
            raise ValueError("code_reference must be non-empty")
        self._code[contract] = code_reference

    def code_of(self, contract: Address) -> str:
        return self._code[contract]

    def deploy_pool(
        self,
        code_reference: str,
        *,
        salt: str,
        config: Optional[PoolConfig] = None,
    ) -> LiquidityPool:
        """
        Register a pool contract under a deterministic address and return it
        (uninitialized). `config` defaults to the host settings' pool config.
        """
        address = derive_address("pool", code_reference, salt)
        if address in self._code:
            raise ValueError(f"contract already deployed: {address}")
        self._code[address] = code_reference
        return LiquidityPool(address, self, self.settings.pool if config is None else config)

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    def _snapshot(self) -> _HostSnapshot:
        return _HostSnapshot(
            store=self.store.snapshot(),
            tokens={address: token.snapshot() for address, token in self._tokens.items()},
            code=dict(self._code),
        )

    def _restore(self, snap: _HostSnapshot) -> None:
        self.store.restore(snap.store)
        self._tokens = {address: token for address, token in self._tokens.items() if address in snap.tokens}
        for address, token in self._tokens.items():
            token.restore(snap.tokens[address])
        self._code = dict(snap.code)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._depth > 0:
            yield
            return
        snap = self._snapshot()
        self._depth += 1
        try:
            yield
        except BaseException:
            self._restore(snap)
            raise
        finally:
            self._depth -= 1

    @contextmanager
    def invocation(self, *addresses: Address) -> Iterator[None]:
        """
        Scope of one external call. Grants `addresses` and clears every
        authorization on exit. A signature-based authorizer refuses grants
        with `Unauthorized`.
        """
        if addresses:
            self.authorizer.grant(*addresses)
        try:
            yield
        finally:
            self.authorizer.end_invocation()
