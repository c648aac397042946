"""
Staking ledger: stake positions over a single asset, with rewards apportioned
retroactively to every stake that predates them.
"""

from .config import LedgerConfig, load_config
from .core import (
    Authorization,
    AuthorizationError,
    DivisionUndefined,
    InvalidAmount,
    LedgerInvariantError,
    PartialWithdrawalNotSupported,
    StakingError,
    StakingLedger,
    TransferError,
)

__version__ = "0.1.0"

__all__ = [
    "LedgerConfig",
    "load_config",
    "Authorization",
    "AuthorizationError",
    "DivisionUndefined",
    "InvalidAmount",
    "LedgerInvariantError",
    "PartialWithdrawalNotSupported",
    "StakingError",
    "StakingLedger",
    "TransferError",
]
