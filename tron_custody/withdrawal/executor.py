"""
Withdrawal executor: sends TRX from a custodial wallet.

Loads and decrypts the wallet secret, builds a transfer from the address the
key controls, signs it locally and broadcasts it. The ledger row is marked
COMPLETED with the chain transaction id on success, or FAILED with a reason
before the error is raised to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from tron_custody.core.exceptions import (
    BroadcastRejected,
    ConfigError,
    DecryptError,
    NotFoundError,
    WithdrawalError,
)
from tron_custody.custody_logging import get_logger
from tron_custody.security.encryption import SecretCipher
from tron_custody.tron_client.client import BroadcastResult
from tron_custody.tron_client.keys import address_from_private_key
from tron_custody.tron_listener.models import CHAIN, CHAIN_CURRENCY
from tron_custody.utils.amounts import to_sun

logger = get_logger(__name__)


class ProgressReporter(Protocol):
    def on_step(self, message: str) -> None: ...

    def on_success(self, message: str) -> None: ...

    def on_fail(self, message: str) -> None: ...


class NullProgressReporter:
    def on_step(self, message: str) -> None:
        pass

    def on_success(self, message: str) -> None:
        pass

    def on_fail(self, message: str) -> None:
        pass


class TransferClient(Protocol):
    async def build_transfer(self, from_address: str, to_address: str, amount_sun: int) -> dict[str, Any]: ...

    def sign(self, transaction: dict[str, Any], private_key: str) -> dict[str, Any]: ...

    async def broadcast(self, signed_transaction: dict[str, Any]) -> BroadcastResult: ...


class WithdrawalLedger(Protocol):
    def get_wallet_secret(self, wallet_id: str, currency: str, chain: str) -> str | None: ...

    def mark_completed(self, transaction_id: str, trx_id: str) -> bool: ...

    def mark_failed(self, transaction_id: str, description: str) -> bool: ...


class WithdrawalExecutor:
    def __init__(
        self,
        client: TransferClient,
        ledger: WithdrawalLedger,
        cipher: SecretCipher | None,
    ) -> None:
        self._client = client
        self._ledger = ledger
        self._cipher = cipher

    async def _ledger_call(self, fn: Any, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: fn(*args))

    async def withdraw(
        self,
        transaction_id: str,
        wallet_id: str,
        amount: Any,
        to_address: str,
        progress: ProgressReporter | None = None,
    ) -> str:
        """
        Transfer amount TRX from wallet_id to to_address for ledger row transaction_id.

        Returns the chain transaction id. Raises WithdrawalError (with the
        underlying error as __cause__) after marking the row FAILED.
        """
        progress = progress or NullProgressReporter()
        try:
            progress.on_step(f"Processing Tron withdrawal for transaction {transaction_id}")
            amount_sun = to_sun(amount)
            tx_id = await self._transfer(wallet_id, to_address, amount_sun, progress)
            await self._ledger_call(self._ledger.mark_completed, transaction_id, tx_id)
            logger.info(
                "withdrawal_completed",
                transaction_id=transaction_id,
                wallet_id=wallet_id,
                tx_hash=tx_id,
                amount_sun=amount_sun,
            )
            progress.on_success(f"Tron withdrawal completed: {tx_id}")
            return tx_id
        except Exception as e:
            logger.error(
                "withdrawal_failed",
                transaction_id=transaction_id,
                wallet_id=wallet_id,
                error=str(e),
            )
            progress.on_fail(str(e) or "Failed to execute withdrawal")
            try:
                await self._ledger_call(
                    self._ledger.mark_failed,
                    transaction_id,
                    f"Withdrawal failed: {e}",
                )
            except Exception as mark_error:
                logger.exception(
                    "withdrawal_mark_failed_error",
                    transaction_id=transaction_id,
                    error=str(mark_error),
                )
            if isinstance(e, WithdrawalError):
                raise
            raise WithdrawalError(f"Failed to transfer TRX: {e}") from e

    async def _load_private_key(self, wallet_id: str) -> str:
        if self._cipher is None:
            raise ConfigError("WALLET_ENCRYPTION_KEY must be set to decrypt wallet keys")
        ciphertext = await self._ledger_call(
            self._ledger.get_wallet_secret, wallet_id, CHAIN_CURRENCY, CHAIN
        )
        if not ciphertext:
            raise NotFoundError("Private key not found for the wallet")
        payload = self._cipher.decrypt(ciphertext)
        private_key = str(payload.get("privateKey") or "").strip()
        if private_key[:2].lower() == "0x":
            private_key = private_key[2:]
        if not private_key:
            raise DecryptError("Decrypted wallet secret has no private key")
        return private_key

    async def _transfer(
        self,
        wallet_id: str,
        to_address: str,
        amount_sun: int,
        progress: ProgressReporter,
    ) -> str:
        private_key = await self._load_private_key(wallet_id)
        try:
            from_address = address_from_private_key(private_key)
        except ValueError as e:
            raise DecryptError(f"Wallet private key is invalid: {e}") from e

        unsigned = await self._client.build_transfer(from_address, to_address, amount_sun)
        signed = self._client.sign(unsigned, private_key)
        progress.on_step(f"Broadcasting transfer of {amount_sun} Sun to {to_address}")
        receipt = await self._client.broadcast(signed)
        if not receipt.accepted or not receipt.tx_id:
            raise BroadcastRejected(
                f"Transaction failed: {receipt.message or receipt.raw}",
                receipt.raw,
            )
        return receipt.tx_id
