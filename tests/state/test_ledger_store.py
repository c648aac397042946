"""Tests for stakeledger/state/ledger.py — stake/reward records and the store."""

import pytest

from stakeledger.state.ledger import LedgerStore, Reward, Stake


class TestStake:
    def test_valid(self):
        s = Stake(amount=100, when=5)
        assert s.amount == 100
        assert s.when == 5

    def test_frozen(self):
        s = Stake(amount=1, when=0)
        with pytest.raises(AttributeError):
            s.amount = 2  # type: ignore

    def test_zero_amount_rejected(self):
        with pytest.raises(ValueError):
            Stake(amount=0, when=0)

    def test_negative_when_rejected(self):
        with pytest.raises(ValueError):
            Stake(amount=1, when=-1)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            Stake(amount=True, when=0)  # type: ignore[arg-type]


class TestReward:
    def test_valid(self):
        r = Reward(amount=50, when=2, total_at_time=100, distributor="treasury")
        assert r.total_at_time == 100

    def test_empty_distributor_rejected(self):
        with pytest.raises(TypeError):
            Reward(amount=50, when=2, total_at_time=100, distributor="")

    def test_zero_amount_rejected(self):
        with pytest.raises(ValueError):
            Reward(amount=0, when=2, total_at_time=100, distributor="t")


class TestLedgerStore:
    def test_empty(self):
        store = LedgerStore()
        assert store.total == 0
        assert store.accounts() == []
        assert store.rewards() == ()
        assert store.stakes_of("alice") == ()

    def test_append_preserves_insertion_order(self):
        store = LedgerStore()
        store.append_stake("alice", Stake(amount=10, when=1))
        store.append_stake("alice", Stake(amount=20, when=2))
        assert [s.amount for s in store.stakes_of("alice")] == [10, 20]
        # Appending does not touch the total; the engine owns that.
        assert store.total == 0

    def test_accounts_sorted(self):
        store = LedgerStore()
        store.append_stake("carol", Stake(amount=1, when=1))
        store.append_stake("alice", Stake(amount=1, when=1))
        assert store.accounts() == ["alice", "carol"]

    def test_remove_stakes_returns_all_and_empties(self):
        store = LedgerStore()
        store.append_stake("alice", Stake(amount=10, when=1))
        store.append_stake("alice", Stake(amount=20, when=2))
        removed = store.remove_stakes("alice")
        assert [s.amount for s in removed] == [10, 20]
        assert store.stakes_of("alice") == ()
        assert "alice" not in store.accounts()

    def test_remove_unknown_account_is_empty(self):
        assert LedgerStore().remove_stakes("nobody") == ()

    def test_restore_stakes(self):
        store = LedgerStore()
        store.append_stake("alice", Stake(amount=10, when=1))
        removed = store.remove_stakes("alice")
        store.restore_stakes("alice", removed)
        assert store.stakes_of("alice") == removed

    def test_restore_over_active_account_rejected(self):
        store = LedgerStore()
        store.append_stake("alice", Stake(amount=10, when=1))
        with pytest.raises(ValueError):
            store.restore_stakes("alice", [Stake(amount=5, when=0)])

    def test_restore_empty_is_noop(self):
        store = LedgerStore()
        store.restore_stakes("alice", ())
        assert store.accounts() == []

    def test_stakes_of_is_a_copy(self):
        store = LedgerStore()
        store.append_stake("alice", Stake(amount=10, when=1))
        view = store.stakes_of("alice")
        store.append_stake("alice", Stake(amount=5, when=2))
        assert len(view) == 1

    def test_reward_log(self):
        store = LedgerStore()
        r1 = Reward(amount=5, when=1, total_at_time=10, distributor="t")
        r2 = Reward(amount=7, when=2, total_at_time=10, distributor="t")
        store.append_reward(r1)
        store.append_reward(r2)
        assert store.rewards() == (r1, r2)
        assert store.reward_count() == 2

    def test_truncate_rewards(self):
        store = LedgerStore()
        store.append_reward(Reward(amount=5, when=1, total_at_time=10, distributor="t"))
        store.append_reward(Reward(amount=7, when=2, total_at_time=10, distributor="t"))
        store.truncate_rewards(1)
        assert store.reward_count() == 1
        with pytest.raises(ValueError):
            store.truncate_rewards(5)

    def test_adjust_total(self):
        store = LedgerStore()
        store.adjust_total(100)
        store.adjust_total(-40)
        assert store.total == 60

    def test_adjust_total_negative_rejected(self):
        store = LedgerStore()
        store.adjust_total(10)
        with pytest.raises(ValueError):
            store.adjust_total(-11)
        assert store.total == 10

    def test_principal_sum(self):
        store = LedgerStore()
        store.append_stake("alice", Stake(amount=10, when=1))
        store.append_stake("bob", Stake(amount=32, when=1))
        assert store.principal_sum() == 42
