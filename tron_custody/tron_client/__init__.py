"""
TRON chain adapter: HTTP client, key handling and address normalization.
"""

from tron_custody.tron_client.client import BroadcastResult, TronChainClient
from tron_custody.tron_client.keys import (
    TRON_DERIVATION_PATH,
    WalletCredentials,
    address_from_private_key,
    create_wallet,
    sign_transaction,
)
from tron_custody.tron_client.normalizer import normalize_address

__all__ = [
    "BroadcastResult",
    "TRON_DERIVATION_PATH",
    "TronChainClient",
    "WalletCredentials",
    "address_from_private_key",
    "create_wallet",
    "normalize_address",
    "sign_transaction",
]
