"""Reward apportionment (deterministic, integer-only).

Each stake earns, from every reward recorded strictly after it, the share

    stake.amount * reward.amount // reward.total_at_time

computed against the stake's original amount. Shares never compound: a share
earned from one reward has no effect on the share of any later reward.
Truncation dust stays in the ledger and is not redistributed.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ..state.ledger import Amount, Reward, Stake
from .errors import DivisionUndefined


def reward_share(stake_amount: Amount, reward: Reward) -> Amount:
    """Floor share of `reward` owed to a stake of `stake_amount`."""
    if reward.total_at_time <= 0:
        raise DivisionUndefined(
            f"reward at {reward.when} recorded with total_at_time={reward.total_at_time}"
        )
    return (stake_amount * reward.amount) // reward.total_at_time


def stake_contribution(stake: Stake, rewards: Sequence[Reward]) -> Amount:
    """
    Principal plus every reward share owed to a single stake.

    Rewards are scanned newest-first; the scan stops at the first reward that
    is not strictly newer than the stake, since the log is ordered by `when`.
    """
    contribution = stake.amount
    i = len(rewards)
    while i > 0:
        i -= 1
        reward = rewards[i]
        if reward.when <= stake.when:
            break
        contribution += reward_share(stake.amount, reward)
    return contribution


def balance_of(stakes: Iterable[Stake], rewards: Sequence[Reward]) -> Amount:
    """Sum of `stake_contribution` over an account's stakes (0 for no stakes)."""
    return sum(stake_contribution(s, rewards) for s in stakes)


def principal_of(stakes: Iterable[Stake]) -> Amount:
    return sum(s.amount for s in stakes)
