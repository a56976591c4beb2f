"""
Authorizer implementations for the integration layer.

- `GrantAuthorizer`: the host grants addresses explicitly for the duration of
  one invocation (tests, scenarios, trusted local callers).
- `BlsInvocationAuthorizer`: an address is authorized by a BLS12-381
  signature (py_ecc `G2Basic`) over a domain-separated digest of the call
  and the signer's next nonce.
"""

from __future__ import annotations

import hashlib
from typing import Any, Dict, Mapping, Set, Tuple

from py_ecc.bls import G2Basic

from ..core.errors import Unauthorized
from ..core.interfaces import Authorizer
from ..state.balances import Address
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, hex_to_bytes_fixed


BLS_PUBKEY_BYTES = 48
BLS_SIGNATURE_BYTES = 96


class GrantAuthorizer(Authorizer):
    """Authorizes exactly the addresses granted for the current invocation."""

    def __init__(self) -> None:
        self._granted: Set[Address] = set()

    def grant(self, *addresses: Address) -> None:
        self._granted.update(addresses)

    def end_invocation(self) -> None:
        self._granted.clear()

    def require_authorized(self, address: Address) -> None:
        if address not in self._granted:
            raise Unauthorized(f"invocation is not authorized for {address}")


def invocation_digest(*, chain_id: str, address: Address, nonce: int, call: Mapping[str, Any]) -> bytes:
    """
    32-byte message the signer commits to.

    digest = sha256(domain_sep("pool_invocation:<chain_id>") || canonical_json(payload))
    """
    if not isinstance(nonce, int) or isinstance(nonce, bool) or nonce < 0:
        raise ValueError("nonce must be a non-negative int")
    payload = {"address": address, "nonce": nonce, "call": dict(call)}
    msg = domain_sep_bytes(f"pool_invocation:{chain_id}", version=1) + canonical_json_bytes(payload)
    return hashlib.sha256(msg).digest()


def keypair_from_seed(seed: bytes) -> Tuple[int, str]:
    """Deterministic (secret_key, 0x-pubkey) pair; seed must be at least 32 bytes."""
    if len(seed) < 32:
        raise ValueError("seed must be at least 32 bytes")
    sk = G2Basic.KeyGen(seed)
    return sk, "0x" + bytes(G2Basic.SkToPk(sk)).hex()


def sign_invocation(
    secret_key: int,
    *,
    chain_id: str,
    address: Address,
    nonce: int,
    call: Mapping[str, Any],
) -> str:
    digest = invocation_digest(chain_id=chain_id, address=address, nonce=nonce, call=call)
    return "0x" + bytes(G2Basic.Sign(secret_key, digest)).hex()


class BlsInvocationAuthorizer(Authorizer):
    """
    Signature-based authorizer.

    Each registered address has a BLS public key and a nonce counter. A valid
    signature for the address' current nonce authorizes it until
    `end_invocation()`; the nonce is consumed whether or not the operation
    later succeeds, so a signature cannot be replayed.
    """

    def __init__(self, *, chain_id: str) -> None:
        if not chain_id:
            raise ValueError("chain_id must be non-empty")
        self.chain_id = chain_id
        self._pubkeys: Dict[Address, bytes] = {}
        self._nonces: Dict[Address, int] = {}
        self._authorized: Set[Address] = set()

    def register(self, address: Address, pubkey_hex: str) -> None:
        self._pubkeys[address] = hex_to_bytes_fixed(pubkey_hex, nbytes=BLS_PUBKEY_BYTES, name="pubkey")
        self._nonces.setdefault(address, 0)

    def next_nonce(self, address: Address) -> int:
        return self._nonces.get(address, 0)

    def present(self, address: Address, *, call: Mapping[str, Any], signature_hex: str) -> None:
        """
        Verify a signed invocation and authorize `address`.

        Raises:
            Unauthorized: Unknown address, malformed or invalid signature
        """
        pubkey = self._pubkeys.get(address)
        if pubkey is None:
            raise Unauthorized(f"no public key registered for {address}")
        try:
            sig = hex_to_bytes_fixed(signature_hex, nbytes=BLS_SIGNATURE_BYTES, name="signature")
        except (TypeError, ValueError) as exc:
            raise Unauthorized(f"malformed signature: {exc}") from exc

        nonce = self.next_nonce(address)
        digest = invocation_digest(chain_id=self.chain_id, address=address, nonce=nonce, call=call)
        if not G2Basic.Verify(pubkey, digest, sig):
            raise Unauthorized(f"invalid signature for {address} at nonce {nonce}")

        self._nonces[address] = nonce + 1
        self._authorized.add(address)

    def grant(self, *addresses: Address) -> None:
        raise Unauthorized(f"signed invocation required for {', '.join(addresses)}")

    def end_invocation(self) -> None:
        self._authorized.clear()

    def require_authorized(self, address: Address) -> None:
        if address not in self._authorized:
            raise Unauthorized(f"no valid signature presented for {address}")
