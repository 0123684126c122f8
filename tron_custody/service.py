"""
TRON custody service: the public entry point.

Wires the chain client, scanner, cache, deposit monitor, withdrawal executor
and fee estimator from Settings. Construct it, then `await start()` (or use
it as an async context manager); `await stop()` ends monitoring sessions and
closes network resources.
"""

from __future__ import annotations

import asyncio
from typing import Any

from tron_custody.config.env import mask_url
from tron_custody.config.settings import Settings, get_settings
from tron_custody.core.exceptions import ConfigError
from tron_custody.custody_logging import get_logger
from tron_custody.database.ledger import LedgerStore
from tron_custody.security.encryption import SecretCipher
from tron_custody.tron_client.client import TronChainClient
from tron_custody.tron_client.keys import WalletCredentials, create_wallet
from tron_custody.tron_listener.cache import (
    CacheStore,
    InMemoryCacheStore,
    RedisCacheStore,
    TransactionCache,
)
from tron_custody.tron_listener.models import CHAIN, CHAIN_CURRENCY, CustodialWallet, ParsedTransaction
from tron_custody.tron_listener.monitor import DepositMonitor
from tron_custody.tron_listener.notifier import DepositCallback, DepositNotifier, build_deposit_notifier
from tron_custody.tron_listener.processor import DepositProcessor
from tron_custody.tron_listener.scanner import BlockScanner
from tron_custody.utils.amounts import format_sun
from tron_custody.withdrawal.executor import ProgressReporter, WithdrawalExecutor
from tron_custody.withdrawal.fees import FeeEstimator

logger = get_logger(__name__)


class TronCustodyService:
    """Deposit watching and withdrawal execution for custodial TRON wallets."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: TronChainClient | None = None,
        ledger: LedgerStore | None = None,
        cache_store: CacheStore | None = None,
        notifier: DepositNotifier | None = None,
        deposit_callback: DepositCallback | None = None,
        cipher: SecretCipher | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        s = self._settings
        self._client = client or TronChainClient(
            s.rpc_url,
            api_key=s.api_key,
            timeout_sec=s.request_timeout_sec,
        )
        self._ledger = ledger or LedgerStore(s.database_url)
        if cache_store is None:
            cache_store = RedisCacheStore(s.redis_url) if s.redis_url else InMemoryCacheStore()
        self._cache_store = cache_store
        self._cache = TransactionCache(cache_store, expiration_minutes=s.cache_expiration_minutes)
        self._notifier = notifier or build_deposit_notifier(s, deposit_callback)
        self._cipher = cipher or (SecretCipher(s.encryption_key) if s.encryption_key else None)

        self._scanner = BlockScanner(self._client, batch_size=s.scan_batch_size)
        self._processor = DepositProcessor(self._client, self._notifier)
        self._monitor = DepositMonitor(
            self._scanner,
            self._ledger,
            self._processor,
            interval_sec=s.monitor_interval_sec,
        )
        self._fees = FeeEstimator(self._client)
        self._started = False

    @property
    def monitor(self) -> DepositMonitor:
        return self._monitor

    @property
    def scanner(self) -> BlockScanner:
        return self._scanner

    async def start(self) -> None:
        """Create ledger tables and check that the node answers."""
        if self._started:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._ledger.init_db)
        try:
            height = await self._client.current_height()
            logger.info(
                "custody_service_started",
                network=self._settings.network,
                rpc_url=mask_url(self._settings.rpc_url),
                head=height,
            )
        except Exception as e:
            logger.warning("custody_service_node_unreachable", error=str(e))
        self._started = True

    async def stop(self) -> None:
        await self._monitor.stop()
        await self._client.aclose()
        await self._cache_store.close()
        self._started = False
        logger.info("custody_service_stopped")

    async def __aenter__(self) -> "TronCustodyService":
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def _require_cipher(self) -> SecretCipher:
        if self._cipher is None:
            raise ConfigError("WALLET_ENCRYPTION_KEY must be set for custody key operations")
        return self._cipher

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def create_wallet(self) -> WalletCredentials:
        """Generate a new custodial wallet (mnemonic + TRON address)."""
        credentials = create_wallet()
        logger.info("wallet_created", address=credentials.address)
        return credentials

    async def store_wallet_secret(self, wallet_id: str, credentials: WalletCredentials) -> None:
        """Encrypt the wallet's key payload and persist it for later withdrawals."""
        ciphertext = self._require_cipher().encrypt(credentials.secret_payload())
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: self._ledger.save_wallet_secret(wallet_id, CHAIN_CURRENCY, CHAIN, ciphertext),
        )

    async def fetch_transactions(self, address: str) -> list[ParsedTransaction]:
        """Return transfers into address, served from the cache while it is fresh."""
        cached = await self._cache.get(address)
        if cached is not None:
            return cached
        transactions = await self._scanner.scan(address)
        await self._cache.put(address, transactions)
        return transactions

    async def get_balance(self, address: str) -> str:
        """Return the TRX balance of address as a decimal string."""
        try:
            balance_sun = await self._client.balance(address)
        except Exception as e:
            logger.error("balance_fetch_failed", address=address, error=str(e))
            raise
        return format_sun(balance_sun)

    async def monitor_deposits(self, wallet: CustodialWallet, address: str) -> None:
        """Start watching address for a deposit to wallet (idempotent, returns immediately)."""
        await self._monitor.monitor_deposits(wallet, address)

    async def handle_withdrawal(
        self,
        transaction_id: str,
        wallet_id: str,
        amount: Any,
        to_address: str,
        progress: ProgressReporter | None = None,
    ) -> str:
        """Send amount TRX to to_address; raises WithdrawalError on failure."""
        executor = WithdrawalExecutor(self._client, self._ledger, self._cipher)
        return await executor.withdraw(transaction_id, wallet_id, amount, to_address, progress)

    async def estimate_fee(self, from_address: str, to_address: str, amount_sun: int) -> int:
        """Estimated fee in Sun; 0 means the estimate is unknown."""
        return await self._fees.estimate(from_address, to_address, amount_sun)

    async def is_address_activated(self, address: str) -> bool:
        """True when the address exists on chain. Errors are reported as not activated."""
        try:
            account = await self._client.account(address)
        except Exception as e:
            logger.error("address_activation_check_failed", address=address, error=str(e))
            return False
        return bool(account and account.get("address"))
