#!/usr/bin/env python3
"""
Replay a YAML ledger script and print the resulting state as JSON.

Example:
    python3 tools/ledger_replay.py tools/scenarios/two_stakers.yaml --pooled
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stakeledger.config import load_config
from stakeledger.integration.replay import run_file
from stakeledger.logging_setup import configure_logging


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay a staking ledger script (YAML) and print the end state.")
    p.add_argument("script", type=Path, help="Path to the YAML script")
    p.add_argument("--config", type=Path, default=None, help="LedgerConfig YAML (default: $STAKELEDGER_CONFIG)")
    p.add_argument("--pooled", action="store_true", help="Count distributed rewards into the running total")
    p.add_argument("--log-level", default=None, help="Override log level (default: config log_level)")
    p.add_argument("--fail-on-error", action="store_true", help="Exit 1 if any op was rejected")
    args = p.parse_args(argv)

    base = load_config(args.config)
    configure_logging(args.log_level or base.log_level)

    defaults = {
        "ledger_id": base.ledger_id,
        "chain_id": base.chain_id,
        "max_amount": base.max_amount,
        "check_invariants": base.check_invariants,
        "pool_rewards_into_total": base.pool_rewards_into_total,
    }
    overrides = {"pool_rewards_into_total": True} if args.pooled else None
    report = run_file(args.script, defaults=defaults, overrides=overrides)

    print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    if args.fail_on_error and report.errors:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
