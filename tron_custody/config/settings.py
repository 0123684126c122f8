"""
Application settings and environment configuration.

Loads configuration from environment variables and .env, validates the RPC
endpoint, and exposes a typed Settings object shared by the chain client,
scanner, cache, monitor, ledger store and withdrawal executor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from tron_custody.config.env import (
    get_tron_api_key,
    get_tron_network,
    get_tron_rpc_url,
    load_custody_env,
    validate_rpc_url,
)

DEFAULT_REQUEST_TIMEOUT_SEC = 15.0
DEFAULT_CACHE_EXPIRATION_MINUTES = 30
DEFAULT_SCAN_BATCH_SIZE = 10
DEFAULT_MONITOR_INTERVAL_SEC = 60.0
DEFAULT_SQLITE_PATH = "custody.db"


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else default


def _database_url() -> str:
    """CUSTODY_DB_URL or DATABASE_URL when set; else SQLite at CUSTODY_DB_PATH or custody.db."""
    url = (os.getenv("CUSTODY_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("CUSTODY_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


@dataclass
class Settings:
    """
    Runtime configuration.

    rpc_url: TRON full-node HTTP endpoint (validated; ConfigError if malformed).
    cache_expiration_minutes: Read-through cache freshness window.
    scan_batch_size: Blocks fetched concurrently per batch.
    monitor_interval_sec: Delay between deposit monitor ticks.
    redis_url: Cache store; None keeps the cache in process memory.
    deposit_notifier: "noop" or "http" (POST to deposit_callback_url).
    """

    rpc_url: str
    network: str = "mainnet"
    api_key: str | None = None
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC
    cache_expiration_minutes: int = DEFAULT_CACHE_EXPIRATION_MINUTES
    scan_batch_size: int = DEFAULT_SCAN_BATCH_SIZE
    monitor_interval_sec: float = DEFAULT_MONITOR_INTERVAL_SEC
    database_url: str = f"sqlite:///{DEFAULT_SQLITE_PATH}"
    encryption_key: str | None = None
    redis_url: str | None = None
    deposit_notifier: str = "noop"
    deposit_callback_url: str | None = None

    def __post_init__(self) -> None:
        self.rpc_url = validate_rpc_url(self.rpc_url)
        self.scan_batch_size = max(1, int(self.scan_batch_size))
        self.cache_expiration_minutes = max(0, int(self.cache_expiration_minutes))
        self.monitor_interval_sec = max(0.0, float(self.monitor_interval_sec))
        self.deposit_notifier = (self.deposit_notifier or "noop").strip().lower()

    @classmethod
    def from_env(cls) -> "Settings":
        """Build Settings from environment (and .env) with defaults."""
        load_custody_env()
        network = get_tron_network()
        return cls(
            rpc_url=get_tron_rpc_url(network),
            network=network,
            api_key=get_tron_api_key(),
            request_timeout_sec=_env_float("TRON_REQUEST_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC),
            cache_expiration_minutes=_env_int("TRON_CACHE_EXPIRATION_MINUTES", DEFAULT_CACHE_EXPIRATION_MINUTES),
            scan_batch_size=_env_int("TRON_SCAN_BATCH_SIZE", DEFAULT_SCAN_BATCH_SIZE),
            monitor_interval_sec=_env_float("TRON_MONITOR_INTERVAL_SEC", DEFAULT_MONITOR_INTERVAL_SEC),
            database_url=_database_url(),
            encryption_key=(os.getenv("WALLET_ENCRYPTION_KEY") or "").strip() or None,
            redis_url=(os.getenv("REDIS_URL") or "").strip() or None,
            deposit_notifier=os.getenv("DEPOSIT_NOTIFIER", "noop"),
            deposit_callback_url=(os.getenv("DEPOSIT_CALLBACK_URL") or "").strip() or None,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process settings, loaded from the environment on first call."""
    return Settings.from_env()
