"""
TRON listener package.

Scans blocks for transfers into custodial addresses, parses them into
canonical records, caches per-address results, and runs deposit monitoring
sessions that hand each new deposit to the ledger once.
"""

from tron_custody.tron_listener.cache import (
    InMemoryCacheStore,
    RedisCacheStore,
    TransactionCache,
)
from tron_custody.tron_listener.models import (
    CustodialWallet,
    DepositDescriptor,
    ParsedTransaction,
    TransactionStatus,
)
from tron_custody.tron_listener.monitor import DepositMonitor, MonitorSessionRegistry
from tron_custody.tron_listener.notifier import (
    CallbackDepositNotifier,
    HttpDepositNotifier,
    NoopDepositNotifier,
    build_deposit_notifier,
)
from tron_custody.tron_listener.parser import decode_transfer, parse, parse_batch
from tron_custody.tron_listener.processor import DepositProcessor
from tron_custody.tron_listener.scanner import BlockScanner, ScanCursorStore

__all__ = [
    "BlockScanner",
    "CallbackDepositNotifier",
    "CustodialWallet",
    "DepositDescriptor",
    "DepositMonitor",
    "DepositProcessor",
    "HttpDepositNotifier",
    "InMemoryCacheStore",
    "MonitorSessionRegistry",
    "NoopDepositNotifier",
    "ParsedTransaction",
    "RedisCacheStore",
    "ScanCursorStore",
    "TransactionCache",
    "TransactionStatus",
    "build_deposit_notifier",
    "decode_transfer",
    "parse",
    "parse_batch",
]
