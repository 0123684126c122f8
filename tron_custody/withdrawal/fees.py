"""
Fee estimator for TRX transfers.

A transfer burns bandwidth points roughly proportional to its serialized
size; points the sender lacks are paid in TRX at a fixed price. The
estimate fails open: any error yields 0, which callers must read as
"unknown", not "free".
"""

from __future__ import annotations

import json
import math
from typing import Any, Protocol

from tron_custody.core.exceptions import EstimationError
from tron_custody.custody_logging import get_logger

logger = get_logger(__name__)

# Each missing bandwidth point costs 10,000 Sun (0.01 TRX)
SUN_PER_BANDWIDTH_POINT = 10_000


class FeeClient(Protocol):
    async def build_transfer(self, from_address: str, to_address: str, amount_sun: int) -> dict[str, Any]: ...

    async def bandwidth(self, address: str) -> int: ...


def bandwidth_needed(transaction: dict[str, Any]) -> int:
    """Bandwidth proxy: half the length of the compact JSON encoding, rounded up."""
    return math.ceil(len(json.dumps(transaction, separators=(",", ":"))) / 2)


class FeeEstimator:
    def __init__(self, client: FeeClient, *, price_sun: int = SUN_PER_BANDWIDTH_POINT) -> None:
        self._client = client
        self._price = price_sun

    async def estimate(self, from_address: str, to_address: str, amount_sun: int) -> int:
        """Return the estimated fee in Sun, or 0 when it cannot be estimated."""
        try:
            transaction = await self._client.build_transfer(from_address, to_address, amount_sun)
            if not transaction:
                raise EstimationError("node returned an empty transaction")
            needed = bandwidth_needed(transaction)
            available = await self._client.bandwidth(from_address)
            deficit = max(0, needed - int(available))
        except Exception as e:
            logger.error(
                "fee_estimate_failed",
                from_address=from_address,
                to_address=to_address,
                error=str(e),
            )
            return 0
        logger.debug("fee_estimated", needed=needed, available=available, deficit=deficit)
        return deficit * self._price
