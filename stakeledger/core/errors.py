"""Exception types for the staking ledger.

Every failure a ledger operation can report derives from ``StakingError``.
Errors are raised synchronously to the caller of the failing operation and
never leave a partially applied mutation behind.
"""

from __future__ import annotations

from typing import Optional


class StakingError(Exception):
    """Base class for ledger operation failures."""

    reason: str = "error"


class InvalidAmount(StakingError):
    """Raised when an amount is not a positive int within the configured bound."""

    reason = "InvalidAmount"


# AuthorizationError reasons.
MALFORMED_SIGNATURE = "MalformedSignature"
EXPIRED = "Expired"
BAD_NONCE = "BadNonce"
BAD_SIGNATURE = "BadSignature"
SIGNER_MISMATCH = "SignerMismatch"


class AuthorizationError(StakingError):
    """Raised when a signed authorization is malformed or does not verify."""

    def __init__(self, reason: str, detail: Optional[str] = None) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class TransferError(StakingError):
    """Raised when the asset collaborator rejects a transfer."""

    reason = "TransferError"


class PartialWithdrawalNotSupported(StakingError):
    """Raised when a withdrawal does not request exactly the full balance."""

    reason = "PartialWithdrawalNotSupported"

    def __init__(self, requested: int, balance: int) -> None:
        self.requested = requested
        self.balance = balance
        super().__init__(f"requested {requested}, balance is {balance}")


class DivisionUndefined(StakingError):
    """Raised when a reward would be apportioned against a zero total."""

    reason = "DivisionUndefined"


class LedgerInvariantError(StakingError):
    """Raised when a ledger state violates one or more invariants."""

    reason = "LedgerInvariantError"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
