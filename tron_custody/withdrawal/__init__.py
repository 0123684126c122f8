"""
Outbound transfers: withdrawal execution and fee estimation.
"""

from tron_custody.withdrawal.executor import (
    NullProgressReporter,
    ProgressReporter,
    WithdrawalExecutor,
)
from tron_custody.withdrawal.fees import FeeEstimator, bandwidth_needed

__all__ = [
    "FeeEstimator",
    "NullProgressReporter",
    "ProgressReporter",
    "WithdrawalExecutor",
    "bandwidth_needed",
]
