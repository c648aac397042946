"""
State management for the staking ledger
"""

from .ledger import AccountKey, LedgerStore, Reward, Stake
from .nonces import NonceTable
from .snapshot import ledger_root, store_from_dict, store_to_dict

__all__ = [
    "AccountKey",
    "LedgerStore",
    "Reward",
    "Stake",
    "NonceTable",
    "ledger_root",
    "store_from_dict",
    "store_to_dict",
]
