"""
Permit nonce table for replay protection.

We track, per owner, the last consumed permit nonce. Policy is strict
sequential nonces: the next valid permit for an owner carries `last + 1`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .ledger import AccountKey


MAX_NONCE = 2**64 - 1


@dataclass
class NonceTable:
    """Mutable mapping: owner -> last consumed nonce (0 = none consumed yet)."""

    _last: Dict[AccountKey, int] = field(default_factory=dict)

    @staticmethod
    def _key(owner: AccountKey) -> AccountKey:
        if not isinstance(owner, str) or not owner:
            raise TypeError("owner must be a non-empty str")
        return owner.lower()

    def get_last(self, owner: AccountKey) -> int:
        return self._last.get(self._key(owner), 0)

    def next_nonce(self, owner: AccountKey) -> int:
        return self.get_last(owner) + 1

    def set_last(self, owner: AccountKey, last_nonce: int) -> None:
        if not isinstance(last_nonce, int) or isinstance(last_nonce, bool) or last_nonce < 0:
            raise TypeError("last_nonce must be a non-negative int")
        if last_nonce > MAX_NONCE:
            raise TypeError("last_nonce must fit in u64")
        self._last[self._key(owner)] = last_nonce
