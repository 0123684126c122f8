"""
Deposit monitor: one polling session per (wallet, address).

A session scans for new transfers into the address, skips any whose hash the
ledger already holds for the wallet's user, and hands the first new one to
the deposit processor. The session then ends: it processes at most one
deposit. Ticks within a session never overlap; the next tick is scheduled
only after the previous one finished.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Protocol

from tron_custody.custody_logging import get_logger
from tron_custody.tron_client.normalizer import normalize_address
from tron_custody.tron_listener.models import CustodialWallet, ParsedTransaction, TransactionStatus
from tron_custody.tron_listener.processor import DepositProcessor

logger = get_logger(__name__)

DEFAULT_MONITOR_INTERVAL_SEC = 60.0

SessionKey = tuple[str, str]


class TransactionScanner(Protocol):
    async def scan(self, address: str) -> list[ParsedTransaction]: ...


class DepositLedger(Protocol):
    def has_transaction(self, trx_id: str, user_id: str) -> bool: ...


class MonitorSessionRegistry:
    """Presence-only registry of active sessions; registration is an atomic check-and-set."""

    def __init__(self) -> None:
        self._keys: set[SessionKey] = set()
        self._lock = threading.Lock()

    def try_register(self, key: SessionKey) -> bool:
        """Register key; False if a session for it already exists."""
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def release(self, key: SessionKey) -> None:
        with self._lock:
            self._keys.discard(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


class DepositMonitor:
    """
    Runs deposit polling sessions as asyncio tasks.

    stop() ends every session at its next suspension point; sessions
    otherwise end only after processing a deposit.
    """

    def __init__(
        self,
        scanner: TransactionScanner,
        ledger: DepositLedger,
        processor: DepositProcessor,
        *,
        interval_sec: float = DEFAULT_MONITOR_INTERVAL_SEC,
        registry: MonitorSessionRegistry | None = None,
    ) -> None:
        self._scanner = scanner
        self._ledger = ledger
        self._processor = processor
        self._interval = interval_sec
        self._registry = registry if registry is not None else MonitorSessionRegistry()
        self._tasks: dict[SessionKey, asyncio.Task] = {}
        self._stop_event = asyncio.Event()

    @property
    def registry(self) -> MonitorSessionRegistry:
        return self._registry

    def session_task(self, wallet_id: str, address: str) -> asyncio.Task | None:
        """Return the running task for a session, if any."""
        return self._tasks.get((wallet_id, normalize_address(address)))

    async def monitor_deposits(self, wallet: CustodialWallet, address: str) -> None:
        """Start a session for (wallet, address) unless one is already running. Does not wait."""
        address = normalize_address(address)
        key: SessionKey = (wallet.id, address)
        if not self._registry.try_register(key):
            logger.debug("monitor_already_running", wallet_id=wallet.id, address=address)
            return
        logger.info("monitor_started", wallet_id=wallet.id, address=address)
        task = asyncio.get_running_loop().create_task(self._run_session(key, wallet, address))
        self._tasks[key] = task

    async def stop(self) -> None:
        """End all sessions and wait for their tasks to finish."""
        self._stop_event.set()
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._stop_event.clear()

    async def _run_session(self, key: SessionKey, wallet: CustodialWallet, address: str) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    done = await self._tick(wallet, address)
                except Exception as e:
                    logger.exception(
                        "monitor_tick_failed",
                        wallet_id=wallet.id,
                        address=address,
                        error=str(e),
                    )
                    done = False
                if done:
                    logger.info("monitor_deposit_handled", wallet_id=wallet.id, address=address)
                    return
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
            logger.info("monitor_stopped", wallet_id=wallet.id, address=address)
        finally:
            self._registry.release(key)
            self._tasks.pop(key, None)

    async def _tick(self, wallet: CustodialWallet, address: str) -> bool:
        """One poll. True once a new deposit was handed to the processor."""
        transactions = await self._scanner.scan(address)
        deposits = [
            tx for tx in transactions
            if tx.to_address == address and tx.status is TransactionStatus.SUCCESS
        ]
        if deposits:
            logger.info("monitor_deposits_found", address=address, count=len(deposits))

        loop = asyncio.get_running_loop()
        for deposit in deposits:
            exists = await loop.run_in_executor(
                None, lambda h=deposit.hash: self._ledger.has_transaction(h, wallet.user_id)
            )
            if exists:
                continue
            # Session ends after this call whether or not the processor succeeded.
            await self._processor.process(deposit.hash, wallet, address)
            return True
        return False
