"""
Participant-side helpers: keys, addresses and permit signing
"""

from .permit_signer import (
    address_of,
    create_permit_request,
    derive_private_key,
    keypair_from_seed,
    sign_permit,
)

__all__ = [
    "address_of",
    "create_permit_request",
    "derive_private_key",
    "keypair_from_seed",
    "sign_permit",
]
