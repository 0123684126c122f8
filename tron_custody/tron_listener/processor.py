"""
Deposit processor: turns a recognized deposit into a ledger notification.

Fetches the transaction receipt and body from the node, decodes the
transfer with the parser's contract rule, and calls the deposit notifier
exactly once. Failures are logged, never raised.
"""

from __future__ import annotations

from typing import Any, Protocol

from tron_custody.custody_logging import get_logger
from tron_custody.tron_listener.models import CustodialWallet, DepositDescriptor
from tron_custody.tron_listener.notifier import DepositNotifier
from tron_custody.tron_listener.parser import decode_transfer
from tron_custody.utils.amounts import format_sun

logger = get_logger(__name__)


class TransactionSource(Protocol):
    async def transaction_info(self, tx_hash: str) -> dict[str, Any] | None: ...

    async def transaction_details(self, tx_hash: str) -> dict[str, Any] | None: ...


class DepositProcessor:
    def __init__(self, client: TransactionSource, notifier: DepositNotifier) -> None:
        self._client = client
        self._notifier = notifier

    async def process(self, tx_hash: str, wallet: CustodialWallet, address: str) -> bool:
        """
        Notify the ledger of the deposit tx_hash into address.

        Returns True when the notifier accepted it; False when the transaction
        is unknown to the node or any step failed.
        """
        try:
            logger.debug("deposit_fetch_transaction", tx_hash=tx_hash)
            info = await self._client.transaction_info(tx_hash)
            if not info:
                logger.error("deposit_transaction_not_found", tx_hash=tx_hash)
                return False
            details = await self._client.transaction_details(tx_hash)
            if not details:
                logger.error("deposit_transaction_details_not_found", tx_hash=tx_hash)
                return False

            from_address, _, amount_sun = decode_transfer(details)
            fee = format_sun(info.get("fee")) if info.get("fee") else "0"
            descriptor = DepositDescriptor(
                id=wallet.id,
                hash=tx_hash,
                from_address=from_address,
                address=address,
                amount=format_sun(amount_sun),
                fee=fee,
            )
            await self._notifier.notify_deposit(descriptor, tx_hash)
        except Exception as e:
            logger.exception(
                "deposit_process_failed",
                tx_hash=tx_hash,
                wallet_id=wallet.id,
                error=str(e),
            )
            return False

        logger.info(
            "deposit_processed",
            tx_hash=tx_hash,
            wallet_id=wallet.id,
            address=address,
            amount=descriptor.amount,
        )
        return True
