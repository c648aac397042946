"""
Snapshot encoding for the ledger store (v1).

Logical persisted layout:

    {
      "version": 1,
      "total": int,
      "stakes": [{"account": str, "entries": [{"amount": int, "when": int}, ...]}, ...],
      "rewards": [{"amount": int, "when": int, "total_at_time": int, "distributor": str}, ...]
    }

Accounts are emitted sorted, so two stores holding the same logical state encode
to the same bytes regardless of the order accounts were first seen.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .ledger import LedgerStore, Reward, Stake


SNAPSHOT_VERSION = 1


def store_to_dict(store: LedgerStore) -> Dict[str, Any]:
    stakes: List[Dict[str, Any]] = []
    for account in store.accounts():
        entries = [{"amount": s.amount, "when": s.when} for s in store.stakes_of(account)]
        stakes.append({"account": account, "entries": entries})
    rewards = [
        {
            "amount": r.amount,
            "when": r.when,
            "total_at_time": r.total_at_time,
            "distributor": r.distributor,
        }
        for r in store.rewards()
    ]
    return {
        "version": SNAPSHOT_VERSION,
        "total": store.total,
        "stakes": stakes,
        "rewards": rewards,
    }


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be an object")
    return value


def _require_list(value: Any, *, name: str) -> list:
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list")
    return value


def store_from_dict(d: Mapping[str, Any]) -> LedgerStore:
    """
    Rebuild a LedgerStore from `store_to_dict` output.

    Only structural checks are done here (types, ordering, no empty or
    duplicate accounts). Accounting invariants are checked by the engine
    when it adopts the store.

    Raises:
        KeyError: Missing field
        TypeError / ValueError: Malformed snapshot
    """
    _require_mapping(d, name="snapshot")
    version = d["version"]
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version!r}")

    store = LedgerStore()
    seen: set[str] = set()
    for i, item in enumerate(_require_list(d["stakes"], name="stakes")):
        item = _require_mapping(item, name=f"stakes[{i}]")
        account = item["account"]
        if not isinstance(account, str) or not account:
            raise TypeError(f"stakes[{i}].account must be a non-empty str")
        if account in seen:
            raise ValueError(f"duplicate account in snapshot: {account!r}")
        seen.add(account)
        entries = _require_list(item["entries"], name=f"stakes[{i}].entries")
        if not entries:
            raise ValueError(f"empty stake sequence for {account!r}")
        last_when = -1
        for e in entries:
            e = _require_mapping(e, name=f"stakes[{i}].entries[]")
            stake = Stake(amount=e["amount"], when=e["when"])
            if stake.when < last_when:
                raise ValueError(f"stakes for {account!r} are not in chronological order")
            last_when = stake.when
            store.append_stake(account, stake)

    last_when = -1
    for i, item in enumerate(_require_list(d["rewards"], name="rewards")):
        item = _require_mapping(item, name=f"rewards[{i}]")
        reward = Reward(
            amount=item["amount"],
            when=item["when"],
            total_at_time=item["total_at_time"],
            distributor=item["distributor"],
        )
        if reward.when < last_when:
            raise ValueError("rewards are not in chronological order")
        last_when = reward.when
        store.append_reward(reward)

    total = d["total"]
    if not isinstance(total, int) or isinstance(total, bool):
        raise TypeError("total must be an int")
    store.adjust_total(total)
    return store


def dumps(store: LedgerStore) -> str:
    return canonical_json_bytes(store_to_dict(store)).decode("utf-8")


def loads(text: str) -> LedgerStore:
    return store_from_dict(json.loads(text))


def ledger_root(store: LedgerStore) -> str:
    """Stable 0x-prefixed sha256 commitment to the logical ledger state."""
    payload = canonical_json_bytes(store_to_dict(store))
    return sha256_hex(domain_sep_bytes("ledger_root", version=SNAPSHOT_VERSION) + payload)
