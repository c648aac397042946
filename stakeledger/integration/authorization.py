"""
Permit (one-time signed authorization) verification.

A permit authorizes the ledger (`spender`) to pull exactly `value` from `owner`
until `deadline`, once: it carries the owner's next sequential nonce, which is
consumed only after the ledger operation using it commits.

Signing scheme:

    digest = SHA256( domain_sep(f"stake_permit:{chain_id}", v1)
                     || canonical_json_bytes(request.signing_dict()) )
    signature = v (1 byte) || r (32 bytes, big-endian) || s (32 bytes, big-endian)

The signer is recovered from (digest, v, r, s) on secp256k1 and must derive to
the owner's address.
"""

from __future__ import annotations

import hashlib
from typing import Optional, Tuple

from py_ecc.secp256k1.secp256k1 import N as SECP256K1_N
from py_ecc.secp256k1.secp256k1 import ecdsa_raw_recover

from ..core.errors import (
    BAD_NONCE,
    BAD_SIGNATURE,
    EXPIRED,
    MALFORMED_SIGNATURE,
    SIGNER_MISMATCH,
    AuthorizationError,
)
from ..core.types import AuthorizationRequest, Signature
from ..state.canonical import canonical_address, canonical_json_bytes, domain_sep_bytes
from ..state.ledger import AccountKey
from ..state.nonces import NonceTable


SIGNATURE_LEN = 65
ADDRESS_NBYTES = 20
_VALID_V = (27, 28)


def decode_signature(data: bytes) -> Signature:
    """
    Split a 65-byte `v || r || s` signature.

    Raises:
        AuthorizationError(MalformedSignature): If `data` is not exactly 65 bytes
    """
    if not isinstance(data, (bytes, bytearray)):
        raise AuthorizationError(MALFORMED_SIGNATURE, "signature must be bytes")
    if len(data) != SIGNATURE_LEN:
        raise AuthorizationError(
            MALFORMED_SIGNATURE, f"signature must be {SIGNATURE_LEN} bytes, got {len(data)}"
        )
    raw = bytes(data)
    return Signature(
        v=raw[0],
        r=int.from_bytes(raw[1:33], "big"),
        s=int.from_bytes(raw[33:65], "big"),
    )


def encode_signature(v: int, r: int, s: int) -> bytes:
    if not (0 <= v <= 0xFF):
        raise ValueError(f"v must fit in one byte: {v}")
    return bytes([v]) + r.to_bytes(32, "big") + s.to_bytes(32, "big")


def pubkey_to_address(pubkey: Tuple[int, int]) -> str:
    """0x-prefixed lowercase hex of the last 20 bytes of SHA256(x || y)."""
    x, y = pubkey
    raw = x.to_bytes(32, "big") + y.to_bytes(32, "big")
    return "0x" + hashlib.sha256(raw).digest()[-ADDRESS_NBYTES:].hex()


def permit_digest(request: AuthorizationRequest, *, chain_id: str) -> bytes:
    msg = domain_sep_bytes(f"stake_permit:{chain_id}", version=1) + canonical_json_bytes(
        request.signing_dict()
    )
    return hashlib.sha256(msg).digest()


def recover_signer(digest: bytes, sig: Signature) -> Optional[str]:
    """Return the signer address, or None if the signature is not recoverable."""
    if sig.v not in _VALID_V:
        return None
    if not (1 <= sig.r < SECP256K1_N and 1 <= sig.s < SECP256K1_N):
        return None
    try:
        point = ecdsa_raw_recover(digest, (sig.v, sig.r, sig.s))
    except ValueError:
        return None
    if not point:
        return None
    return pubkey_to_address(point)


class Secp256k1Authorizer:
    """Verifies permits signed with secp256k1 keys; owners are derived addresses."""

    def __init__(self, *, chain_id: str, nonces: Optional[NonceTable] = None) -> None:
        self.chain_id = chain_id
        self.nonces = nonces if nonces is not None else NonceTable()

    def expected_nonce(self, owner: AccountKey) -> int:
        return self.nonces.next_nonce(owner)

    def verify_authorization(
        self, request: AuthorizationRequest, signature: bytes, *, now: int
    ) -> Signature:
        """
        Check a permit without consuming it.

        Raises:
            AuthorizationError: MalformedSignature, Expired, BadNonce,
                BadSignature or SignerMismatch
        """
        sig = decode_signature(signature)
        if now > request.deadline:
            raise AuthorizationError(EXPIRED, f"deadline {request.deadline} < now {now}")
        expected = self.expected_nonce(request.owner)
        if request.nonce != expected:
            raise AuthorizationError(BAD_NONCE, f"expected nonce {expected}, got {request.nonce}")

        signer = recover_signer(permit_digest(request, chain_id=self.chain_id), sig)
        if signer is None:
            raise AuthorizationError(BAD_SIGNATURE, "signature does not recover to a public key")
        owner = canonical_address(request.owner)
        if owner is None:
            raise AuthorizationError(SIGNER_MISMATCH, f"owner is not an address: {request.owner!r}")
        if signer != owner:
            raise AuthorizationError(SIGNER_MISMATCH, f"signed by {signer}, owner is {owner}")
        return sig

    def consume(self, request: AuthorizationRequest) -> None:
        self.nonces.set_last(request.owner, request.nonce)
