"""Data types shared by the engine and its collaborators.

All types are frozen dataclasses (immutable).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..state.ledger import AccountKey, Amount, Timestamp


@unique
class Event(Enum):
    """One member per observable ledger event."""
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    DISTRIBUTE = "Distribute"


@dataclass(frozen=True)
class LedgerEvent:
    """Emitted to observers after an operation commits."""

    kind: Event
    account: AccountKey
    amount: Amount
    when: Timestamp


@dataclass(frozen=True)
class Authorization:
    """
    A one-time signed authorization ("permit") supplied with deposit/distribute.

    `signature` is the raw 65-byte `v || r || s` encoding.
    """

    deadline: Timestamp
    signature: bytes


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    The message an authorization is bound to.

    owner:   account whose funds are pulled
    spender: ledger identity allowed to pull them
    value:   exact amount
    deadline: last timestamp at which the permit is valid
    nonce:   owner's next sequential permit nonce
    """

    owner: AccountKey
    spender: str
    value: Amount
    deadline: Timestamp
    nonce: int

    def signing_dict(self) -> dict[str, int | str]:
        return {
            "owner": self.owner.lower(),
            "spender": self.spender,
            "value": self.value,
            "deadline": self.deadline,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class Signature:
    """Decoded recoverable ECDSA signature."""

    v: int
    r: int
    s: int
