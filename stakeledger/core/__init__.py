"""`core`: the stake/reward accounting engine.

- deterministic, integer-only apportionment (`apportion`),
- a single locked ledger object that owns all mutation (`engine`),
- fail-closed invariant checks after every mutation (`invariants`).

Public API:
- `StakingLedger(transfers=..., authorizer=..., config=..., clock=...)`
- `balance_of(stakes, rewards)` / `stake_contribution(stake, rewards)`
- `check_all(store, pooled=False)`
"""

from .apportion import balance_of, principal_of, reward_share, stake_contribution
from .collaborators import AssetTransfer, AuthorizationVerifier
from .engine import StakingLedger
from .errors import (
    AuthorizationError,
    DivisionUndefined,
    InvalidAmount,
    LedgerInvariantError,
    PartialWithdrawalNotSupported,
    StakingError,
    TransferError,
)
from .invariants import INVARIANT_REGISTRY, check_all
from .types import Authorization, AuthorizationRequest, Event, LedgerEvent, Signature

__all__ = [
    "StakingLedger",
    "balance_of",
    "principal_of",
    "reward_share",
    "stake_contribution",
    "AssetTransfer",
    "AuthorizationVerifier",
    "AuthorizationError",
    "DivisionUndefined",
    "InvalidAmount",
    "LedgerInvariantError",
    "PartialWithdrawalNotSupported",
    "StakingError",
    "TransferError",
    "INVARIANT_REGISTRY",
    "check_all",
    "Authorization",
    "AuthorizationRequest",
    "Event",
    "LedgerEvent",
    "Signature",
]
