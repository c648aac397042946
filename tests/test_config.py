from __future__ import annotations

import pytest

from stakeledger.config import CONFIG_ENV_VAR, MAX_AMOUNT, LedgerConfig, config_from_mapping, load_config


def test_defaults() -> None:
    config = LedgerConfig()
    assert config.ledger_id == "stakeledger"
    assert config.chain_id == "local"
    assert config.max_amount == MAX_AMOUNT == 2**256 - 1
    assert config.check_invariants is True
    assert config.pool_rewards_into_total is False
    assert config.log_level == "INFO"


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValueError):
        LedgerConfig(ledger_id="")
    with pytest.raises(ValueError):
        LedgerConfig(max_amount=0)
    with pytest.raises(ValueError):
        LedgerConfig(pool_rewards_into_total="yes")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        LedgerConfig(log_level="LOUD")


def test_mapping_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError, match="unknown config keys: reward_mode"):
        config_from_mapping({"reward_mode": "pooled"})


def test_mapping_normalizes_log_level() -> None:
    assert config_from_mapping({"log_level": "debug"}).log_level == "DEBUG"
    assert config_from_mapping(None) == LedgerConfig()


def test_load_from_path(tmp_path) -> None:
    path = tmp_path / "ledger.yaml"
    path.write_text("chain_id: mainnet\npool_rewards_into_total: true\nmax_amount: 1000000\n", encoding="utf-8")
    config = load_config(path)
    assert config.chain_id == "mainnet"
    assert config.pool_rewards_into_total is True
    assert config.max_amount == 1_000_000


def test_load_from_env(tmp_path, monkeypatch) -> None:
    path = tmp_path / "ledger.yaml"
    path.write_text("ledger_id: pool-9\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config().ledger_id == "pool-9"


def test_no_path_no_env_gives_defaults(monkeypatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert load_config() == LedgerConfig()


def test_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_empty_file_gives_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == LedgerConfig()


def test_non_mapping_document(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
