"""
Environment variable loading and validation for TRON custody.

- TRON_NETWORK: mainnet | shasta | nile (default: mainnet)
- TRON_MAINNET_RPC / TRON_SHASTA_RPC / TRON_NILE_RPC: per-network full-node URL override
- TRON_API_KEY: TronGrid API key, sent as TRON-PRO-API-KEY
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from tron_custody.core.exceptions import ConfigError

# Project root: config is tron_custody/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_RPC_URL = "https://api.trongrid.io"
SHASTA_RPC_URL = "https://api.shasta.trongrid.io"
NILE_RPC_URL = "https://api.nileex.io"

_NETWORKS: dict[str, tuple[str, str]] = {
    "mainnet": ("TRON_MAINNET_RPC", MAINNET_RPC_URL),
    "shasta": ("TRON_SHASTA_RPC", SHASTA_RPC_URL),
    "nile": ("TRON_NILE_RPC", NILE_RPC_URL),
}


def load_custody_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def get_tron_network() -> str:
    """Return TRON_NETWORK from env, lower-cased. Default: mainnet."""
    load_custody_env()
    return (os.getenv("TRON_NETWORK") or "mainnet").strip().lower()


def validate_rpc_url(url: str) -> str:
    """Return url stripped of trailing slashes; raise ConfigError unless it is an http(s) URL."""
    url = (url or "").strip()
    if not url:
        raise ConfigError("TRON RPC URL must be non-empty")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid TRON RPC URL format: {url}")
    return url.rstrip("/")


def get_tron_rpc_url(network: str | None = None) -> str:
    """
    Resolve the full-node URL for a network.
    Order: TRON_<NETWORK>_RPC > public TronGrid / Nile endpoint.
    """
    load_custody_env()
    network = (network or get_tron_network()).strip().lower()
    if network not in _NETWORKS:
        raise ConfigError(f"Invalid Tron network: {network}")
    env_key, default = _NETWORKS[network]
    url = (os.getenv(env_key) or default).strip()
    return validate_rpc_url(url)


def get_tron_api_key() -> str | None:
    """Return TRON_API_KEY or None when unset."""
    load_custody_env()
    key = (os.getenv("TRON_API_KEY") or "").strip()
    return key or None


def mask_url(url: str) -> str:
    """Hide query-string secrets (api keys) before logging a URL."""
    if "?" in url:
        return url.split("?")[0] + "?***"
    return url
