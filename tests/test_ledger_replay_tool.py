from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog


SCENARIO = Path(__file__).resolve().parents[1] / "tools" / "scenarios" / "two_stakers.yaml"


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    monkeypatch.delenv("STAKELEDGER_CONFIG", raising=False)
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers = []
    logging.getLogger().setLevel(logging.WARNING)


def _report(out: str) -> dict:
    # Log lines precede the report; the report is the trailing indented JSON document.
    return json.loads(out[out.index("{\n"):])


def test_replay_tool_principal_mode(capsys) -> None:
    from tools.ledger_replay import main

    assert main([str(SCENARIO), "--log-level", "ERROR"]) == 0
    report = _report(capsys.readouterr().out)
    assert report["token_balances"] == {"alice": 1100, "bob": 1050, "treasury": 850}
    assert report["total_staked"] == 0
    assert report["errors"] == []


def test_replay_tool_pooled_flag(capsys) -> None:
    from tools.ledger_replay import main

    assert main([str(SCENARIO), "--pooled", "--log-level", "ERROR"]) == 0
    report = _report(capsys.readouterr().out)
    assert report["custody"] == 20
    assert report["token_balances"]["alice"] == 1090


def test_replay_tool_config_file(tmp_path, capsys) -> None:
    from tools.ledger_replay import main

    config = tmp_path / "ledger.yaml"
    config.write_text("pool_rewards_into_total: true\nlog_level: ERROR\n", encoding="utf-8")
    assert main([str(SCENARIO), "--config", str(config)]) == 0
    report = _report(capsys.readouterr().out)
    assert report["custody"] == 20


def test_replay_tool_fail_on_error(tmp_path, capsys) -> None:
    from tools.ledger_replay import main

    script = tmp_path / "bad.yaml"
    script.write_text(
        "mint: {alice: 10}\nops:\n  - {op: deposit, account: alice, amount: 50, at: 1}\n",
        encoding="utf-8",
    )
    assert main([str(script), "--fail-on-error", "--log-level", "ERROR"]) == 1
    report = _report(capsys.readouterr().out)
    assert report["errors"][0]["reason"] == "TransferError"
