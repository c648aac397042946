"""
Permit creation and signing for ledger participants.
"""

import hashlib
from typing import Tuple

from py_ecc.secp256k1.secp256k1 import N as SECP256K1_N
from py_ecc.secp256k1.secp256k1 import ecdsa_raw_sign, privtopub

from ..core.types import Authorization, AuthorizationRequest
from ..integration.authorization import encode_signature, permit_digest, pubkey_to_address
from ..state.ledger import AccountKey, Amount


def derive_private_key(seed: bytes) -> bytes:
    """
    Deterministic secp256k1 private key from arbitrary seed bytes.

    Re-hashes until the scalar is in [1, N-1] (practically never loops).

    Args:
        seed: Seed bytes (e.g. an account name for offline replays)

    Returns:
        32-byte private key
    """
    if not isinstance(seed, (bytes, bytearray)) or not seed:
        raise ValueError("seed must be non-empty bytes")
    candidate = hashlib.sha256(b"stakeledger:key:" + bytes(seed)).digest()
    while not (1 <= int.from_bytes(candidate, "big") < SECP256K1_N):
        candidate = hashlib.sha256(candidate).digest()
    return candidate


def address_of(private_key: bytes) -> AccountKey:
    """Account address controlled by `private_key`."""
    return pubkey_to_address(privtopub(private_key))


def keypair_from_seed(seed: bytes) -> Tuple[bytes, AccountKey]:
    private_key = derive_private_key(seed)
    return private_key, address_of(private_key)


def create_permit_request(
    owner: AccountKey,
    spender: str,
    value: Amount,
    deadline: int,
    nonce: int,
) -> AuthorizationRequest:
    """
    Create the request a permit signs.

    Args:
        owner: Address whose funds the ledger may pull
        spender: Ledger id (`LedgerConfig.ledger_id`)
        value: Exact amount of the deposit/distribution
        deadline: Last timestamp the permit is valid
        nonce: Owner's next nonce (`authorizer.expected_nonce(owner)`)

    Returns:
        AuthorizationRequest object
    """
    if value <= 0:
        raise ValueError("value must be positive")
    if deadline < 0:
        raise ValueError("deadline must be non-negative")
    if nonce <= 0:
        raise ValueError("nonce must be positive")
    return AuthorizationRequest(
        owner=owner,
        spender=spender,
        value=value,
        deadline=deadline,
        nonce=nonce,
    )


def sign_permit(request: AuthorizationRequest, private_key: bytes, *, chain_id: str) -> Authorization:
    """
    Sign a permit request with secp256k1.

    Args:
        request: Request to sign
        private_key: 32-byte secp256k1 private key
        chain_id: Ledger deployment's chain id (`LedgerConfig.chain_id`)

    Returns:
        Authorization carrying the request's deadline and the 65-byte signature
    """
    digest = permit_digest(request, chain_id=chain_id)
    v, r, s = ecdsa_raw_sign(digest, private_key)
    return Authorization(deadline=request.deadline, signature=encode_signature(v, r, s))
