"""
Runtime configuration for the staking ledger.

`LedgerConfig` is a frozen dataclass; `load_config()` reads the same fields
from a YAML mapping (path argument or `$STAKELEDGER_CONFIG`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml


CONFIG_ENV_VAR = "STAKELEDGER_CONFIG"

# uint256 domain of the asset the ledger was designed around.
MAX_AMOUNT = 2**256 - 1

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LedgerConfig:
    # Spender identity bound into every permit, and the ledger's custody
    # account on the token.
    ledger_id: str = "stakeledger"
    # Domain-separation label for permit hashes (signature replay across
    # deployments).
    chain_id: str = "local"

    # Parameter domain bound for deposit/withdraw/distribute amounts.
    max_amount: int = MAX_AMOUNT

    # Run the invariant registry after every mutation and roll back on failure.
    check_invariants: bool = True

    # Reward accounting mode:
    # - False: `total` is staked principal only; distribute leaves it alone and
    #   withdraw removes the account's principal.
    # - True: distribute adds the reward to `total` and withdraw removes the
    #   full withdrawn balance, so `total` tracks everything the ledger holds.
    pool_rewards_into_total: bool = False

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("ledger_id", "chain_id"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v:
                raise ValueError(f"{name} must be a non-empty str")
        if not isinstance(self.max_amount, int) or isinstance(self.max_amount, bool) or self.max_amount <= 0:
            raise ValueError("max_amount must be a positive int")
        for name in ("check_invariants", "pool_rewards_into_total"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a bool")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")


def config_from_mapping(raw: Optional[Mapping[str, Any]]) -> LedgerConfig:
    """Build a LedgerConfig, rejecting unknown keys."""
    if raw is None:
        return LedgerConfig()
    if not isinstance(raw, Mapping):
        raise ValueError("config must be a mapping")
    known = {f.name for f in fields(LedgerConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    data = dict(raw)
    if isinstance(data.get("log_level"), str):
        data["log_level"] = data["log_level"].upper()
    return LedgerConfig(**data)


def load_config(path: Optional[Union[str, Path]] = None) -> LedgerConfig:
    """
    Load configuration from YAML.

    Resolution: explicit `path`, else `$STAKELEDGER_CONFIG`, else defaults.

    Raises:
        FileNotFoundError: If an explicit or env-provided path does not exist
        ValueError: If the document is not a valid config mapping
    """
    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        if not env_path:
            return LedgerConfig()
        path = env_path

    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found at {config_file}")
    with open(config_file, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return config_from_mapping(raw)
