"""
Application-level exceptions.

Infrastructure errors (NetworkError) are absorbed at the scan boundary and
retried on the next tick. Credential and data errors (NotFoundError,
DecryptError) propagate to the caller. Withdrawal failures always surface as
WithdrawalError with the underlying error chained as __cause__.
"""

from __future__ import annotations


class CustodyError(Exception):
    """Base class for every error raised by tron_custody."""


class ConfigError(CustodyError):
    """Invalid configuration (e.g. malformed RPC endpoint). Never retried."""


class NetworkError(CustodyError):
    """An RPC call to the TRON node failed or returned an unusable reply."""


class NotFoundError(CustodyError):
    """A wallet secret, transaction or ledger row does not exist."""


class DecryptError(CustodyError):
    """Wallet key material is missing, corrupt or cannot be decrypted."""


class WithdrawalError(CustodyError):
    """A withdrawal could not be executed; the ledger row is marked FAILED."""


class BroadcastRejected(WithdrawalError):
    """The node refused a signed transaction."""

    def __init__(self, message: str, receipt: dict | None = None) -> None:
        super().__init__(message)
        self.receipt = receipt or {}


class EstimationError(CustodyError):
    """Fee estimation failed. Swallowed by the estimator, which returns 0."""
