"""
Single-asset fungible token and the ledger's custody adapter.

`FungibleToken` is the in-process stand-in for the asset the ledger stakes:
a sparse balance table plus ERC20-style allowances. `LedgerCustody` adapts it
to the engine's `AssetTransfer` capability, pulling deposits through the
allowance granted to the ledger account.
"""

from __future__ import annotations

from typing import Dict, Tuple

from ..core.errors import TransferError
from ..state.ledger import AccountKey, Amount


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")


class FungibleToken:
    """
    Balance table mapping account -> amount, with allowances
    (owner, spender) -> amount.

    Zero balances and allowances are removed to keep the tables sparse.
    """

    def __init__(self, symbol: str = "STK") -> None:
        self.symbol = symbol
        self._balances: Dict[AccountKey, Amount] = {}
        self._allowances: Dict[Tuple[AccountKey, AccountKey], Amount] = {}

    def balance_of(self, account: AccountKey) -> Amount:
        """Get balance for account. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def allowance(self, owner: AccountKey, spender: AccountKey) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def _set_balance(self, account: AccountKey, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def mint(self, account: AccountKey, amount: Amount) -> None:
        _require_amount(amount)
        self._set_balance(account, self.balance_of(account) + amount)

    def approve(self, owner: AccountKey, spender: AccountKey, amount: Amount) -> None:
        _require_amount(amount)
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount

    def transfer(self, sender: AccountKey, recipient: AccountKey, amount: Amount) -> None:
        """
        Move `amount` from sender to recipient.

        Raises:
            TransferError: If sender's balance is insufficient
        """
        _require_amount(amount)
        current = self.balance_of(sender)
        if current < amount:
            raise TransferError(f"insufficient balance: {sender} has {current}, needs {amount}")
        self._set_balance(sender, current - amount)
        self._set_balance(recipient, self.balance_of(recipient) + amount)

    def transfer_from(
        self, spender: AccountKey, owner: AccountKey, recipient: AccountKey, amount: Amount
    ) -> None:
        """
        Move `amount` from owner to recipient, spending spender's allowance.

        Raises:
            TransferError: If allowance or balance is insufficient
        """
        _require_amount(amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TransferError(f"insufficient allowance: {spender} may spend {allowed} of {owner}, needs {amount}")
        self.transfer(owner, recipient, amount)
        self.approve(owner, spender, allowed - amount)

    def __repr__(self) -> str:
        return f"FungibleToken({self.symbol}, {len(self._balances)} holders)"


class LedgerCustody:
    """`AssetTransfer` backed by a FungibleToken account owned by the ledger."""

    def __init__(self, token: FungibleToken, ledger_account: AccountKey) -> None:
        self.token = token
        self.ledger_account = ledger_account

    @property
    def held(self) -> Amount:
        return self.token.balance_of(self.ledger_account)

    def transfer_in(self, account: AccountKey, amount: Amount) -> None:
        self.token.transfer_from(self.ledger_account, account, self.ledger_account, amount)

    def transfer_out(self, account: AccountKey, amount: Amount) -> None:
        self.token.transfer(self.ledger_account, account, amount)
