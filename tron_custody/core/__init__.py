"""
Core utilities: exceptions shared by the client, scanner, monitor and executor.
"""

from tron_custody.core.exceptions import (
    BroadcastRejected,
    ConfigError,
    CustodyError,
    DecryptError,
    EstimationError,
    NetworkError,
    NotFoundError,
    WithdrawalError,
)

__all__ = [
    "BroadcastRejected",
    "ConfigError",
    "CustodyError",
    "DecryptError",
    "EstimationError",
    "NetworkError",
    "NotFoundError",
    "WithdrawalError",
]
