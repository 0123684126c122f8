"""
TRON custody: deposit watcher and withdrawal executor for custodial wallets.

Scans TRON blocks for transfers into custodial addresses, hands each new
deposit to the ledger exactly once, and signs and broadcasts outbound
transfers on behalf of custodial wallets.
"""

__version__ = "0.1.0"
