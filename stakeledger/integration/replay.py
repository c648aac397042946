"""
Offline replay of a ledger operation script.

A script is a YAML (or already-parsed) mapping:

    config:            # optional LedgerConfig fields
      pool_rewards_into_total: true
    mint:              # name -> token amount minted before the first op
      alice: 1000
      treasury: 500
    ops:
      - {op: deposit, account: alice, amount: 100, at: 1}
      - {op: distribute, account: treasury, amount: 50, at: 2}
      - {op: withdraw, account: alice, amount: all, at: 3}

Account names map to deterministic secp256k1 keys, so every deposit and
distribution goes through real permit signing and verification. Rejected ops
are recorded in the report and do not stop the replay.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import structlog
import yaml

from ..agents.permit_signer import create_permit_request, keypair_from_seed, sign_permit
from ..config import config_from_mapping
from ..core.engine import StakingLedger
from ..core.errors import StakingError
from ..core.types import LedgerEvent
from .authorization import Secp256k1Authorizer
from .transfers import FungibleToken, LedgerCustody

log = structlog.get_logger(__name__)

DEFAULT_PERMIT_TTL = 3600
_OPS = ("deposit", "withdraw", "distribute")


@dataclass
class ReplayClock:
    now: int = 0

    def __call__(self) -> int:
        return self.now


@dataclass(frozen=True)
class OpError:
    index: int
    op: str
    account: str
    reason: str
    message: str


@dataclass
class ReplayReport:
    balances: Dict[str, int]
    principal: Dict[str, int]
    token_balances: Dict[str, int]
    total_staked: int
    custody: int
    ledger_root: str
    events: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[OpError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balances": dict(self.balances),
            "principal": dict(self.principal),
            "token_balances": dict(self.token_balances),
            "total_staked": self.total_staked,
            "custody": self.custody,
            "ledger_root": self.ledger_root,
            "events": list(self.events),
            "errors": [e.__dict__ for e in self.errors],
        }


class _Participants:
    """name -> (private key, address), derived on first use."""

    def __init__(self) -> None:
        self._keys: Dict[str, Tuple[bytes, str]] = {}

    def get(self, name: str) -> Tuple[bytes, str]:
        if not isinstance(name, str) or not name:
            raise ValueError("account name must be a non-empty str")
        if name not in self._keys:
            self._keys[name] = keypair_from_seed(name.encode("utf-8"))
        return self._keys[name]

    def names(self) -> List[str]:
        return sorted(self._keys)


def _parse_amount(raw: Any, *, index: int) -> Union[int, str]:
    if raw == "all":
        return raw
    if not isinstance(raw, int) or isinstance(raw, bool):
        raise ValueError(f"ops[{index}].amount must be an int or 'all'")
    return raw


def run_script(script: Mapping[str, Any]) -> ReplayReport:
    """Execute every op of `script` against a fresh ledger and report the end state."""
    if not isinstance(script, Mapping):
        raise ValueError("script must be a mapping")
    config = config_from_mapping(script.get("config"))
    clock = ReplayClock()
    token = FungibleToken()
    custody = LedgerCustody(token, config.ledger_id)
    authorizer = Secp256k1Authorizer(chain_id=config.chain_id)
    ledger = StakingLedger(transfers=custody, authorizer=authorizer, config=config, clock=clock)
    people = _Participants()
    names_by_address: Dict[str, str] = {}

    events: List[Dict[str, Any]] = []

    def _record(event: LedgerEvent) -> None:
        events.append({
            "kind": event.kind.value,
            "account": names_by_address.get(event.account, event.account),
            "amount": event.amount,
            "when": event.when,
        })

    ledger.subscribe(_record)

    for name, amount in (script.get("mint") or {}).items():
        _key, address = people.get(name)
        names_by_address[address] = name
        token.mint(address, amount)

    errors: List[OpError] = []
    for index, raw_op in enumerate(script.get("ops") or []):
        if not isinstance(raw_op, Mapping):
            raise ValueError(f"ops[{index}] must be a mapping")
        op = raw_op.get("op")
        if op not in _OPS:
            raise ValueError(f"ops[{index}].op must be one of {', '.join(_OPS)}")
        name = raw_op.get("account")
        private_key, address = people.get(name)
        names_by_address[address] = name
        amount = _parse_amount(raw_op.get("amount"), index=index)
        clock.now = int(raw_op.get("at", clock.now + 1))

        try:
            if op == "withdraw":
                value = ledger.balance(address) if amount == "all" else amount
                ledger.withdraw(address, value)
                continue
            if amount == "all":
                raise ValueError(f"ops[{index}]: amount 'all' is only valid for withdraw")
            deadline = int(raw_op.get("deadline", clock.now + DEFAULT_PERMIT_TTL))
            request = create_permit_request(
                owner=address,
                spender=config.ledger_id,
                value=amount,
                deadline=deadline,
                nonce=authorizer.expected_nonce(address),
            )
            authorization = sign_permit(request, private_key, chain_id=config.chain_id)
            # The replay acts as each participant's wallet: approve, then permit.
            token.approve(address, config.ledger_id, amount)
            if op == "deposit":
                ledger.deposit(address, amount, authorization)
            else:
                ledger.distribute(address, amount, authorization)
        except StakingError as exc:
            errors.append(OpError(index=index, op=op, account=name, reason=exc.reason, message=str(exc)))
        finally:
            if op != "withdraw":
                # Leftover allowance from a rejected pull is not carried into later ops.
                token.approve(address, config.ledger_id, 0)

    names = people.names()
    report = ReplayReport(
        balances={n: ledger.balance(people.get(n)[1]) for n in names},
        principal={n: ledger.principal(people.get(n)[1]) for n in names},
        token_balances={n: token.balance_of(people.get(n)[1]) for n in names},
        total_staked=ledger.total_staked,
        custody=custody.held,
        ledger_root=ledger.root(),
        events=events,
        errors=errors,
    )
    log.info("replay_complete", ops=len(script.get("ops") or []), errors=len(errors), root=report.ledger_root)
    return report


def load_script(path: Union[str, Path]) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        script = yaml.safe_load(f)
    if not isinstance(script, Mapping):
        raise ValueError(f"{path}: script must be a YAML mapping")
    return script


def run_file(
    path: Union[str, Path],
    *,
    defaults: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ReplayReport:
    """Run a script file; config precedence is overrides > script `config` > defaults."""
    script = dict(load_script(path))
    script["config"] = {**(defaults or {}), **(script.get("config") or {}), **(overrides or {})}
    return run_script(script)
