"""Accounting engine for the staking ledger.

``StakingLedger`` owns a ``LedgerStore`` and is the only thing that mutates it.
Each operation:

1. Validates the amount (``InvalidAmount``).
2. Checks operation preconditions (``PartialWithdrawalNotSupported``,
   ``DivisionUndefined``).
3. Calls the external collaborators (authorization, then transfer).
4. Mutates the store, checks invariants on the post-state, and rolls back on
   any failure.
5. Emits a ``LedgerEvent`` to observers.

A single re-entrant lock serializes every operation, reads included, so no
caller can observe a partially applied deposit, withdrawal or distribution.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, List, Mapping, Optional, Tuple

import structlog

from ..config import LedgerConfig
from ..state.ledger import AccountKey, Amount, LedgerStore, Reward, Stake
from ..state.snapshot import ledger_root, store_from_dict, store_to_dict
from .apportion import balance_of, principal_of
from .collaborators import AssetTransfer, AuthorizationVerifier
from .errors import (
    MALFORMED_SIGNATURE,
    AuthorizationError,
    DivisionUndefined,
    InvalidAmount,
    LedgerInvariantError,
    PartialWithdrawalNotSupported,
    StakingError,
    TransferError,
)
from .invariants import check_all
from .types import Authorization, AuthorizationRequest, Event, LedgerEvent

log = structlog.get_logger(__name__)

Clock = Callable[[], int]
Observer = Callable[[LedgerEvent], None]


def _wall_clock() -> int:
    return int(time.time())


def _require_account(account: AccountKey, *, name: str = "account") -> None:
    if not isinstance(account, str) or not account:
        raise TypeError(f"{name} must be a non-empty str")


class StakingLedger:
    """
    Deposit / withdraw / distribute / balance over a single staked asset.

    `clock` returns integer timestamps (default: wall-clock seconds). A reward
    only applies to stakes with a strictly earlier timestamp, so a deposit and
    a distribution that land on the same tick do not share that reward. Pass
    a finer clock (for example `time.time_ns`) when both can happen within
    one second; permit deadlines are compared in the same unit.
    """

    def __init__(
        self,
        *,
        transfers: AssetTransfer,
        authorizer: AuthorizationVerifier,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
        store: Optional[LedgerStore] = None,
    ) -> None:
        self.config = config if config is not None else LedgerConfig()
        self._transfers = transfers
        self._authorizer = authorizer
        self._clock = clock if clock is not None else _wall_clock
        self._store = store if store is not None else LedgerStore()
        self._lock = threading.RLock()
        self._observers: List[Observer] = []

        # Timestamps handed out never go backwards, including across a restore.
        self._last_ts = 0
        for account in self._store.accounts():
            self._last_ts = max(self._last_ts, self._store.stakes_of(account)[-1].when)
        rewards = self._store.rewards()
        if rewards:
            self._last_ts = max(self._last_ts, rewards[-1].when)

        if store is not None:
            violations = check_all(self._store, pooled=self.config.pool_rewards_into_total)
            if violations:
                raise LedgerInvariantError(violations)

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any], **kwargs: Any) -> "StakingLedger":
        """Rebuild a ledger from `snapshot()` output; invariants are re-checked."""
        return cls(store=store_from_dict(snapshot), **kwargs)

    # -- observers ------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def _emit(self, event: LedgerEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                # Already committed; observer failures are not propagated.
                log.exception("observer_failed", kind=event.kind.value, account=event.account)

    # -- helpers --------------------------------------------------------------

    def _now(self) -> int:
        ts = int(self._clock())
        if ts < self._last_ts:
            ts = self._last_ts
        self._last_ts = ts
        return ts

    def _require_amount(self, amount: Amount, *, bounded: bool = True) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise InvalidAmount(f"amount must be an int, got {type(amount).__name__}")
        if amount <= 0:
            raise InvalidAmount(f"amount must be positive: {amount}")
        if bounded and amount > self.config.max_amount:
            raise InvalidAmount(f"amount exceeds max_amount: {amount}")

    def _pull(
        self, owner: AccountKey, amount: Amount, authorization: Authorization, now: int
    ) -> AuthorizationRequest:
        """Verify the permit, then move `amount` into custody. No ledger mutation."""
        if not isinstance(authorization, Authorization):
            raise AuthorizationError(MALFORMED_SIGNATURE, "authorization must be an Authorization")
        request = AuthorizationRequest(
            owner=owner,
            spender=self.config.ledger_id,
            value=amount,
            deadline=authorization.deadline,
            nonce=self._authorizer.expected_nonce(owner),
        )
        self._authorizer.verify_authorization(request, authorization.signature, now=now)
        self._transfers.transfer_in(owner, amount)
        return request

    def _check_or_rollback(self, op: str, undo: Callable[[], None]) -> None:
        if not self.config.check_invariants:
            return
        violations = check_all(self._store, pooled=self.config.pool_rewards_into_total)
        if violations:
            undo()
            log.error("invariant_violation", op=op, violations=violations)
            raise LedgerInvariantError(violations)

    def _reject(self, op: str, account: AccountKey, amount: Any, exc: StakingError) -> None:
        log.warning(f"{op}_rejected", account=account, amount=amount, reason=exc.reason, error=str(exc))

    def _restore_account(self, account: AccountKey, stakes: Tuple[Stake, ...]) -> None:
        self._store.remove_stakes(account)
        self._store.restore_stakes(account, stakes)

    # -- operations -----------------------------------------------------------

    def deposit(self, account: AccountKey, amount: Amount, authorization: Authorization) -> None:
        """
        Stake `amount` for `account`.

        Raises:
            InvalidAmount, AuthorizationError, TransferError, LedgerInvariantError
        """
        _require_account(account)
        with self._lock:
            try:
                self._require_amount(amount)
                now = self._now()
                request = self._pull(account, amount, authorization, now)
            except StakingError as exc:
                self._reject("deposit", account, amount, exc)
                raise

            prior = self._store.stakes_of(account)
            self._store.append_stake(account, Stake(amount=amount, when=now))
            self._store.adjust_total(amount)

            def _undo() -> None:
                self._store.adjust_total(-amount)
                self._restore_account(account, prior)
                self._transfers.transfer_out(account, amount)

            self._check_or_rollback("deposit", _undo)
            self._authorizer.consume(request)
            log.info("deposit", account=account, amount=amount, when=now, total=self._store.total)
            self._emit(LedgerEvent(kind=Event.DEPOSIT, account=account, amount=amount, when=now))

    def withdraw(self, account: AccountKey, amount: Amount) -> None:
        """
        Withdraw the account's entire balance; `amount` must equal it exactly.

        Raises:
            InvalidAmount, PartialWithdrawalNotSupported, TransferError,
            LedgerInvariantError
        """
        _require_account(account)
        pooled = self.config.pool_rewards_into_total
        with self._lock:
            try:
                # Balances include rewards and may exceed max_amount.
                self._require_amount(amount, bounded=False)
                stakes = self._store.stakes_of(account)
                current = balance_of(stakes, self._store.rewards())
                if amount != current:
                    raise PartialWithdrawalNotSupported(requested=amount, balance=current)
            except StakingError as exc:
                self._reject("withdraw", account, amount, exc)
                raise

            now = self._now()
            delta = amount if pooled else principal_of(stakes)
            try:
                self._store.adjust_total(-delta)
            except ValueError as exc:
                log.error("invariant_violation", op="withdraw", violations=["inv_total_nonneg"])
                raise LedgerInvariantError(["inv_total_nonneg"]) from exc
            removed = self._store.remove_stakes(account)

            def _undo() -> None:
                self._store.restore_stakes(account, removed)
                self._store.adjust_total(delta)

            self._check_or_rollback("withdraw", _undo)
            try:
                self._transfers.transfer_out(account, amount)
            except TransferError as exc:
                _undo()
                self._reject("withdraw", account, amount, exc)
                raise
            except Exception:
                _undo()
                log.exception("withdraw_payout_failed", account=account, amount=amount)
                raise
            log.info("withdraw", account=account, amount=amount, when=now, total=self._store.total)
            self._emit(LedgerEvent(kind=Event.WITHDRAW, account=account, amount=amount, when=now))

    def distribute(self, distributor: AccountKey, amount: Amount, authorization: Authorization) -> None:
        """
        Record a reward of `amount` against every stake that exists now.

        Raises:
            InvalidAmount, DivisionUndefined, AuthorizationError, TransferError,
            LedgerInvariantError
        """
        _require_account(distributor, name="distributor")
        pooled = self.config.pool_rewards_into_total
        with self._lock:
            try:
                self._require_amount(amount)
                total = self._store.total
                if total == 0 or not self._store.accounts():
                    raise DivisionUndefined("cannot distribute while nothing is staked")
                now = self._now()
                request = self._pull(distributor, amount, authorization, now)
            except StakingError as exc:
                self._reject("distribute", distributor, amount, exc)
                raise

            reward_count = self._store.reward_count()
            self._store.append_reward(
                Reward(amount=amount, when=now, total_at_time=total, distributor=distributor)
            )
            if pooled:
                self._store.adjust_total(amount)

            def _undo() -> None:
                if pooled:
                    self._store.adjust_total(-amount)
                self._store.truncate_rewards(reward_count)
                self._transfers.transfer_out(distributor, amount)

            self._check_or_rollback("distribute", _undo)
            self._authorizer.consume(request)
            log.info(
                "distribute", distributor=distributor, amount=amount, when=now,
                total_at_time=total, rewards=self._store.reward_count(),
            )
            self._emit(LedgerEvent(kind=Event.DISTRIBUTE, account=distributor, amount=amount, when=now))

    # -- reads ----------------------------------------------------------------

    def balance(self, account: AccountKey) -> Amount:
        """Principal plus every apportioned reward share; 0 if no stakes."""
        with self._lock:
            return balance_of(self._store.stakes_of(account), self._store.rewards())

    def principal(self, account: AccountKey) -> Amount:
        with self._lock:
            return principal_of(self._store.stakes_of(account))

    def accrued_rewards(self, account: AccountKey) -> Amount:
        with self._lock:
            stakes = self._store.stakes_of(account)
            return balance_of(stakes, self._store.rewards()) - principal_of(stakes)

    def stakes_of(self, account: AccountKey) -> Tuple[Stake, ...]:
        with self._lock:
            return self._store.stakes_of(account)

    def rewards(self) -> Tuple[Reward, ...]:
        with self._lock:
            return self._store.rewards()

    def accounts(self) -> List[AccountKey]:
        with self._lock:
            return self._store.accounts()

    @property
    def total_staked(self) -> Amount:
        with self._lock:
            return self._store.total

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return store_to_dict(self._store)

    def root(self) -> str:
        with self._lock:
            return ledger_root(self._store)
