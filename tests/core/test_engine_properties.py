"""Property tests for the staking engine.

Hypothesis drives random deposit / distribute / withdraw sequences and the
ledger's accounting properties are checked after every step, in both reward
accounting modes.
"""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from stakeledger.config import LedgerConfig
from stakeledger.core import Authorization, DivisionUndefined, StakingLedger, check_all
from stakeledger.core.apportion import principal_of
from stakeledger.state.snapshot import store_from_dict


AUTH = Authorization(deadline=10**12, signature=b"\x1b" + b"\x01" * 64)
ACCOUNTS = ("a", "b", "c")


class _Authorizer:
    def expected_nonce(self, owner):
        return 1

    def verify_authorization(self, request, signature, *, now):
        return None

    def consume(self, request):
        pass


class _Transfers:
    def __init__(self):
        self.held = 0

    def transfer_in(self, account, amount):
        self.held += amount

    def transfer_out(self, account, amount):
        self.held -= amount


class _Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


_op = st.one_of(
    st.tuples(st.just("deposit"), st.sampled_from(ACCOUNTS), st.integers(min_value=1, max_value=10**6)),
    st.tuples(st.just("distribute"), st.just("treasury"), st.integers(min_value=1, max_value=10**6)),
    st.tuples(st.just("withdraw"), st.sampled_from(ACCOUNTS), st.just(0)),
)
_step = st.tuples(_op, st.integers(min_value=0, max_value=3))


def _run(steps, *, pooled):
    transfers = _Transfers()
    clock = _Clock()
    ledger = StakingLedger(
        transfers=transfers,
        authorizer=_Authorizer(),
        config=LedgerConfig(pool_rewards_into_total=pooled),
        clock=clock,
    )
    previous = dict.fromkeys(ACCOUNTS, 0)
    for (op, account, amount), dt in steps:
        clock.now += dt
        withdrew = None
        if op == "deposit":
            ledger.deposit(account, amount, AUTH)
        elif op == "distribute":
            if ledger.total_staked == 0 or not ledger.accounts():
                with pytest.raises(DivisionUndefined):
                    ledger.distribute(account, amount, AUTH)
                continue
            ledger.distribute(account, amount, AUTH)
        else:
            owed = ledger.balance(account)
            if owed == 0:
                continue
            ledger.withdraw(account, owed)
            withdrew = account
            # All-or-nothing: nothing is left behind for the account.
            assert ledger.balance(account) == 0
            assert ledger.stakes_of(account) == ()

        _check(ledger, transfers, pooled=pooled)
        for a in ACCOUNTS:
            current = ledger.balance(a)
            # Balances only shrink through the holder's own withdrawal.
            if a != withdrew:
                assert current >= previous[a]
            previous[a] = current
    return ledger


def _check(ledger, transfers, *, pooled):
    snapshot = ledger.snapshot()
    principal = sum(principal_of(ledger.stakes_of(a)) for a in ACCOUNTS)
    if pooled:
        assert ledger.total_staked >= principal
    else:
        assert ledger.total_staked == principal
    assert all(r["total_at_time"] > 0 for r in snapshot["rewards"])

    balances = [ledger.balance(a) for a in ACCOUNTS]
    for account, balance in zip(ACCOUNTS, balances):
        if not ledger.stakes_of(account):
            assert balance == 0
        else:
            assert balance >= principal_of(ledger.stakes_of(account))
    # Custody always covers every outstanding claim.
    assert transfers.held >= sum(balances)


@settings(max_examples=200, deadline=None)
@given(st.lists(_step, max_size=40))
def test_principal_mode_properties(steps):
    _run(steps, pooled=False)


@settings(max_examples=200, deadline=None)
@given(st.lists(_step, max_size=40))
def test_pooled_mode_properties(steps):
    _run(steps, pooled=True)


@settings(max_examples=100, deadline=None)
@given(st.lists(_step, max_size=30))
def test_snapshot_restore_preserves_balances(steps):
    ledger = _run(steps, pooled=False)
    restored = StakingLedger.from_snapshot(
        ledger.snapshot(), transfers=_Transfers(), authorizer=_Authorizer(), clock=_Clock()
    )
    assert check_all(store_from_dict(restored.snapshot())) == []
    for account in ACCOUNTS:
        assert restored.balance(account) == ledger.balance(account)
    assert restored.root() == ledger.root()
