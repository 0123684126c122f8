"""
Persistence for the external ledger rows this service reads and writes.
"""

from tron_custody.database.ledger import LedgerStore
from tron_custody.database.models import LedgerStatus, LedgerTransaction, WalletData

__all__ = [
    "LedgerStatus",
    "LedgerStore",
    "LedgerTransaction",
    "WalletData",
]
