"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import ValidationError

from page_metrics.constants import CACHE_TTL_MS, CIRCULATING_SUPPLY, TOTAL_SUPPLY
from page_metrics.settings import MetricsSettings, Network, OutputFormat, redact_url


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep a developer's local config files out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("PAGE_METRICS_CONFIG", raising=False)


def test_defaults_mirror_deployment_constants():
    settings = MetricsSettings()

    assert settings.cache_ttl_ms == CACHE_TTL_MS
    assert settings.supply.circulating_supply == CIRCULATING_SUPPLY
    assert settings.supply.total_supply == TOTAL_SUPPLY
    assert settings.ethereum.chain_id == 1
    assert settings.optimism.chain_id == 10
    assert settings.base.chain_id == 8453
    assert settings.osmosis.pool_id == "1344"
    assert settings.osmosis.quote_pool_id == "678"
    assert settings.isolate_cosmos_failures is False
    assert settings.retry.max_retries == 3
    assert settings.retry.initial_delay == 1.0
    assert settings.retry.backoff_factor == 2.0
    assert settings.output_format is OutputFormat.TABLE


def test_loads_values_from_toml(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            cache_ttl_ms = 1000
            isolate_cosmos_failures = true
            log_level = "debug"

            [ethereum]
            primary_rpc_url = "https://eth.example/v2/SECRETKEY"
            chain_id = 1

            [retry]
            max_retries = 5

            [osmosis]
            lcd_base_url = "https://lcd.example/"
            """
        ).strip()
    )
    monkeypatch.setenv("PAGE_METRICS_CONFIG", str(config_path))

    settings = MetricsSettings()

    assert settings.cache_ttl_ms == 1000
    assert settings.isolate_cosmos_failures is True
    assert settings.log_level == "DEBUG"
    assert settings.ethereum.primary_rpc_url == "https://eth.example/v2/SECRETKEY"
    assert settings.ethereum.backup_rpc_url is None
    assert settings.retry.max_retries == 5
    assert settings.retry.initial_delay == 1.0
    assert settings.osmosis.lcd_base_url == "https://lcd.example"


def test_accepts_page_metrics_table(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [page_metrics]
            http_max_tries = 7
            """
        ).strip()
    )
    monkeypatch.setenv("PAGE_METRICS_CONFIG", str(config_path))

    assert MetricsSettings().http_max_tries == 7


def test_local_config_file_is_discovered(tmp_path):
    (tmp_path / "page-metrics.toml").write_text("rpc_max_concurrent_calls = 2\n")

    assert MetricsSettings().rpc_max_concurrent_calls == 2


def test_precedence_cli_over_env_over_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text("cache_ttl_ms = 1000\n")
    monkeypatch.setenv("PAGE_METRICS_CONFIG", str(config_path))
    monkeypatch.setenv("PAGE_METRICS_CACHE_TTL_MS", "2000")

    assert MetricsSettings().cache_ttl_ms == 2000
    assert MetricsSettings(cache_ttl_ms=3000).cache_ttl_ms == 3000


def test_nested_env_override(monkeypatch):
    monkeypatch.setenv("PAGE_METRICS_RETRY__INITIAL_DELAY", "0.5")

    settings = MetricsSettings()

    assert settings.retry.initial_delay == 0.5
    assert settings.retry.max_retries == 3


def test_rejects_circulating_above_total():
    with pytest.raises(ValidationError):
        MetricsSettings(supply={"circulating_supply": 200, "total_supply": 100})


def test_rejects_backoff_factor_below_one():
    with pytest.raises(ValidationError):
        MetricsSettings(retry={"backoff_factor": 0.5})


def test_evm_network_lookup():
    settings = MetricsSettings()

    assert settings.evm_network(Network.BASE) is settings.base
    with pytest.raises(ValueError):
        settings.evm_network(Network.OSMOSIS)


def test_safe_dict_redacts_rpc_credentials():
    settings = MetricsSettings(
        ethereum={
            "primary_rpc_url": "https://user:pw@eth.example:8545/v2/SECRETKEY?token=abc",
            "backup_rpc_url": "https://eth-backup.example",
            "chain_id": 1,
        }
    )

    dumped = settings.as_safe_dict()

    assert dumped["ethereum"]["primary_rpc_url"] == "https://eth.example:8545/***?***"
    assert dumped["ethereum"]["backup_rpc_url"] == "https://eth-backup.example"
    assert "SECRETKEY" not in str(dumped)


def test_redact_url_passes_empty_values():
    assert redact_url(None) is None
    assert redact_url("") == ""
