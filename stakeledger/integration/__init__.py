"""
External collaborators of the ledger: permit verification and asset custody

The offline replay runner is imported directly from `stakeledger.integration.replay`.
"""

from .authorization import (
    Secp256k1Authorizer,
    decode_signature,
    encode_signature,
    permit_digest,
    pubkey_to_address,
    recover_signer,
)
from .transfers import FungibleToken, LedgerCustody

__all__ = [
    "Secp256k1Authorizer",
    "decode_signature",
    "encode_signature",
    "permit_digest",
    "pubkey_to_address",
    "recover_signer",
    "FungibleToken",
    "LedgerCustody",
]
