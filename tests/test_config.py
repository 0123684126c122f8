"""
Tests for environment-driven configuration.
"""

from __future__ import annotations

import pytest

from tron_custody.config.env import (
    MAINNET_RPC_URL,
    NILE_RPC_URL,
    SHASTA_RPC_URL,
    get_tron_api_key,
    get_tron_rpc_url,
    mask_url,
    validate_rpc_url,
)
from tron_custody.config.settings import Settings
from tron_custody.core.exceptions import ConfigError

_ENV_VARS = (
    "TRON_NETWORK",
    "TRON_MAINNET_RPC",
    "TRON_SHASTA_RPC",
    "TRON_NILE_RPC",
    "TRON_API_KEY",
    "CUSTODY_DB_URL",
    "DATABASE_URL",
    "CUSTODY_DB_PATH",
    "WALLET_ENCRYPTION_KEY",
    "REDIS_URL",
    "DEPOSIT_NOTIFIER",
    "DEPOSIT_CALLBACK_URL",
    "TRON_SCAN_BATCH_SIZE",
    "TRON_CACHE_EXPIRATION_MINUTES",
    "TRON_MONITOR_INTERVAL_SEC",
    "TRON_REQUEST_TIMEOUT_SEC",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    "network,expected",
    [("mainnet", MAINNET_RPC_URL), ("shasta", SHASTA_RPC_URL), ("nile", NILE_RPC_URL), ("NILE", NILE_RPC_URL)],
)
def test_network_endpoints(network, expected):
    assert get_tron_rpc_url(network) == expected


def test_default_network_is_mainnet():
    assert get_tron_rpc_url() == MAINNET_RPC_URL


def test_endpoint_override(monkeypatch):
    monkeypatch.setenv("TRON_NETWORK", "shasta")
    monkeypatch.setenv("TRON_SHASTA_RPC", "http://localhost:8090/")
    assert get_tron_rpc_url() == "http://localhost:8090"


def test_invalid_network_is_config_error():
    with pytest.raises(ConfigError, match="Invalid Tron network"):
        get_tron_rpc_url("testnet")


def test_invalid_override_is_config_error(monkeypatch):
    monkeypatch.setenv("TRON_MAINNET_RPC", "not a url")
    with pytest.raises(ConfigError):
        get_tron_rpc_url("mainnet")


def test_validate_rpc_url():
    assert validate_rpc_url(" https://api.trongrid.io/ ") == "https://api.trongrid.io"
    for bad in ("", "api.trongrid.io", "ws://node:8090", "https://"):
        with pytest.raises(ConfigError):
            validate_rpc_url(bad)


def test_api_key(monkeypatch):
    assert get_tron_api_key() is None
    monkeypatch.setenv("TRON_API_KEY", " abc ")
    assert get_tron_api_key() == "abc"


def test_mask_url():
    assert mask_url("https://node/x?apikey=secret") == "https://node/x?***"
    assert mask_url("https://node/x") == "https://node/x"


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TRON_NETWORK", "nile")
    monkeypatch.setenv("TRON_API_KEY", "k")
    monkeypatch.setenv("CUSTODY_DB_PATH", str(tmp_path / "c.db"))
    monkeypatch.setenv("TRON_SCAN_BATCH_SIZE", "0")
    monkeypatch.setenv("TRON_CACHE_EXPIRATION_MINUTES", "5")
    monkeypatch.setenv("TRON_MONITOR_INTERVAL_SEC", "2.5")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("DEPOSIT_NOTIFIER", " Http ")
    monkeypatch.setenv("DEPOSIT_CALLBACK_URL", "https://ledger.example/deposits")

    s = Settings.from_env()
    assert s.network == "nile"
    assert s.rpc_url == NILE_RPC_URL
    assert s.api_key == "k"
    assert s.database_url == f"sqlite:///{tmp_path / 'c.db'}"
    assert s.scan_batch_size == 1
    assert s.cache_expiration_minutes == 5
    assert s.monitor_interval_sec == 2.5
    assert s.redis_url == "redis://localhost:6379/0"
    assert s.deposit_notifier == "http"
    assert s.encryption_key is None


def test_settings_database_url_precedence(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/ledger")
    assert Settings.from_env().database_url == "postgresql://u:p@db/ledger"
    monkeypatch.setenv("CUSTODY_DB_URL", "sqlite:///override.db")
    assert Settings.from_env().database_url == "sqlite:///override.db"


def test_settings_reject_bad_rpc_url():
    with pytest.raises(ConfigError):
        Settings(rpc_url="nope")
