"""Invariant checkers for the ledger store.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).

Two reward accounting modes exist (see `LedgerConfig.pool_rewards_into_total`):
in principal mode `total` is exactly the staked principal; in pooled mode it
also carries unclaimed rewards and dust, so only the lower bound applies.
"""

from __future__ import annotations

from typing import Callable

from ..state.ledger import LedgerStore


def inv_total_nonneg(s: LedgerStore) -> bool:
    return s.total >= 0


def inv_total_covers_principal(s: LedgerStore) -> bool:
    return s.total >= s.principal_sum()


def inv_total_equals_principal(s: LedgerStore) -> bool:
    return s.total == s.principal_sum()


def inv_no_empty_stake_sequences(s: LedgerStore) -> bool:
    return all(len(s.stakes_of(a)) > 0 for a in s.accounts())


def inv_stakes_chronological(s: LedgerStore) -> bool:
    for account in s.accounts():
        stakes = s.stakes_of(account)
        if any(a.when > b.when for a, b in zip(stakes, stakes[1:])):
            return False
    return True


def inv_reward_denominator_positive(s: LedgerStore) -> bool:
    return all(r.total_at_time > 0 for r in s.rewards())


def inv_rewards_chronological(s: LedgerStore) -> bool:
    rewards = s.rewards()
    return all(a.when <= b.when for a, b in zip(rewards, rewards[1:]))


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[LedgerStore], bool]] = {
    "inv_total_nonneg": inv_total_nonneg,
    "inv_total_covers_principal": inv_total_covers_principal,
    "inv_total_equals_principal": inv_total_equals_principal,
    "inv_no_empty_stake_sequences": inv_no_empty_stake_sequences,
    "inv_stakes_chronological": inv_stakes_chronological,
    "inv_reward_denominator_positive": inv_reward_denominator_positive,
    "inv_rewards_chronological": inv_rewards_chronological,
}

# Not applicable when rewards are pooled into the total.
PRINCIPAL_MODE_ONLY: frozenset[str] = frozenset({"inv_total_equals_principal"})


def check_all(store: LedgerStore, *, pooled: bool = False) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not (pooled and inv_id in PRINCIPAL_MODE_ONLY) and not check_fn(store)
    ]
