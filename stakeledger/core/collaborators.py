"""Capabilities the engine calls out to.

The engine never moves assets or checks signatures itself; it is handed
objects implementing these protocols. `stakeledger.integration` provides the
production implementations and tests substitute fakes.
"""

from __future__ import annotations

from typing import Protocol

from ..state.ledger import AccountKey, Amount
from .types import AuthorizationRequest, Signature


class AuthorizationVerifier(Protocol):
    def expected_nonce(self, owner: AccountKey) -> int:
        """Nonce the owner's next permit must carry."""
        ...

    def verify_authorization(
        self, request: AuthorizationRequest, signature: bytes, *, now: int
    ) -> Signature:
        """Check a permit without consuming it; raises AuthorizationError."""
        ...

    def consume(self, request: AuthorizationRequest) -> None:
        """Mark the permit used. Called only after the operation commits."""
        ...


class AssetTransfer(Protocol):
    def transfer_in(self, account: AccountKey, amount: Amount) -> None:
        """Pull `amount` from `account` into ledger custody; raises TransferError."""
        ...

    def transfer_out(self, account: AccountKey, amount: Amount) -> None:
        """Pay `amount` from ledger custody to `account`; raises TransferError."""
        ...
