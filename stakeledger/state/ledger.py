"""
Ledger store: per-account stake sequences, the global reward log, and the
running total staked.

This is plain data plus straightforward mutation. Contracts (amount checks,
authorization, transfers, atomicity) live in `stakeledger.core.engine`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple


# Type aliases
AccountKey = str  # opaque participant key (address hex in production)
Amount = int  # non-negative integer (arbitrary precision)
Timestamp = int  # non-decreasing seconds


def _require_uint(value: object, *, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


@dataclass(frozen=True)
class Stake:
    """A principal deposit and the time it was made."""

    amount: Amount
    when: Timestamp

    def __post_init__(self) -> None:
        _require_uint(self.amount, name="amount")
        _require_uint(self.when, name="when")
        if self.amount == 0:
            raise ValueError("stake amount must be positive")


@dataclass(frozen=True)
class Reward:
    """
    A reward pool contribution.

    `total_at_time` is the total staked at the moment the reward was recorded;
    it is the denominator every then-existing stake is apportioned against.
    """

    amount: Amount
    when: Timestamp
    total_at_time: Amount
    distributor: AccountKey

    def __post_init__(self) -> None:
        _require_uint(self.amount, name="amount")
        _require_uint(self.when, name="when")
        _require_uint(self.total_at_time, name="total_at_time")
        if self.amount == 0:
            raise ValueError("reward amount must be positive")
        if not isinstance(self.distributor, str) or not self.distributor:
            raise TypeError("distributor must be a non-empty str")


class LedgerStore:
    """
    Mutable stake/reward tables.

    Stake sequences are only appended to or removed whole; the reward log is
    append-only. Accounts with no stakes are not stored at all, so
    `accounts()` lists exactly the active participants.
    """

    def __init__(self) -> None:
        self._stakes: Dict[AccountKey, List[Stake]] = {}
        self._rewards: List[Reward] = []
        self._total: Amount = 0

    @property
    def total(self) -> Amount:
        return self._total

    def stakes_of(self, account: AccountKey) -> Tuple[Stake, ...]:
        """Return the account's stakes in insertion order (empty if none)."""
        return tuple(self._stakes.get(account, ()))

    def rewards(self) -> Tuple[Reward, ...]:
        return tuple(self._rewards)

    def reward_count(self) -> int:
        return len(self._rewards)

    def accounts(self) -> List[AccountKey]:
        """Active accounts, sorted for deterministic iteration."""
        return sorted(self._stakes)

    def append_stake(self, account: AccountKey, stake: Stake) -> None:
        self._stakes.setdefault(account, []).append(stake)

    def remove_stakes(self, account: AccountKey) -> Tuple[Stake, ...]:
        """Remove and return every stake of the account."""
        return tuple(self._stakes.pop(account, ()))

    def restore_stakes(self, account: AccountKey, stakes: Iterable[Stake]) -> None:
        """
        Put back a sequence returned by `remove_stakes`.

        Raises:
            ValueError: If the account already holds stakes again
        """
        entries = list(stakes)
        if not entries:
            return
        if account in self._stakes:
            raise ValueError(f"cannot restore stakes over an active account: {account!r}")
        self._stakes[account] = entries

    def append_reward(self, reward: Reward) -> None:
        self._rewards.append(reward)

    def truncate_rewards(self, length: int) -> None:
        """Drop rewards appended after `length` (rollback of an uncommitted append)."""
        if not isinstance(length, int) or isinstance(length, bool) or not (0 <= length <= len(self._rewards)):
            raise ValueError(f"invalid reward log length: {length!r}")
        del self._rewards[length:]

    def adjust_total(self, delta: int) -> None:
        """
        Add a signed delta to the running total.

        Raises:
            ValueError: If the resulting total would be negative
        """
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise TypeError("delta must be an int")
        new_total = self._total + delta
        if new_total < 0:
            raise ValueError(f"total cannot go negative: {self._total} + {delta} = {new_total}")
        self._total = new_total

    def principal_sum(self) -> Amount:
        """Sum of every currently held stake (O(stakes))."""
        return sum(s.amount for entries in self._stakes.values() for s in entries)

    def __repr__(self) -> str:
        return (
            f"LedgerStore({len(self._stakes)} accounts, "
            f"{len(self._rewards)} rewards, total={self._total})"
        )
