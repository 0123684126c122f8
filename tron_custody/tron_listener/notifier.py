"""
Deposit notifiers: how a recognized deposit reaches the crediting ledger.

The notifier is chosen by configuration: "noop" (ledger integration not
installed), "http" (POST to a ledger endpoint) or an in-process callback.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Protocol

import httpx

from tron_custody.config.settings import Settings
from tron_custody.core.exceptions import ConfigError
from tron_custody.custody_logging import get_logger
from tron_custody.tron_listener.models import DepositDescriptor

logger = get_logger(__name__)

DepositCallback = (
    Callable[[DepositDescriptor, str], Awaitable[None]]
    | Callable[[DepositDescriptor, str], None]
)


class DepositNotifier(Protocol):
    async def notify_deposit(self, descriptor: DepositDescriptor, tx_hash: str) -> None: ...


class NoopDepositNotifier:
    """Drops notifications. Selected when no ledger integration is configured."""

    async def notify_deposit(self, descriptor: DepositDescriptor, tx_hash: str) -> None:
        logger.info("deposit_notifier_noop", tx_hash=tx_hash, address=descriptor.address)


class CallbackDepositNotifier:
    """Invokes an in-process callback; sync callbacks run in the default executor."""

    def __init__(self, callback: DepositCallback) -> None:
        self._callback = callback

    async def notify_deposit(self, descriptor: DepositDescriptor, tx_hash: str) -> None:
        cb = self._callback
        if inspect.iscoroutinefunction(cb) or inspect.iscoroutinefunction(getattr(cb, "__call__", None)):
            result = cb(descriptor, tx_hash)
        else:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, lambda: cb(descriptor, tx_hash))
        # Covers async __call__ objects and sync callables returning a coroutine
        if inspect.isawaitable(result):
            await result


class HttpDepositNotifier:
    """POSTs {"transaction": descriptor, "hash": tx_hash} to a ledger endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout_sec: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not url.strip():
            raise ValueError("url must be non-empty")
        self._url = url.strip()
        self._timeout = timeout_sec
        self._http_client = http_client

    async def notify_deposit(self, descriptor: DepositDescriptor, tx_hash: str) -> None:
        body: dict[str, Any] = {"transaction": descriptor.to_dict(), "hash": tx_hash}
        if self._http_client is not None:
            resp = await self._http_client.post(self._url, json=body)
            resp.raise_for_status()
            return
        async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
            resp = await client.post(self._url, json=body)
            resp.raise_for_status()


def build_deposit_notifier(
    settings: Settings,
    callback: DepositCallback | None = None,
) -> DepositNotifier:
    """Pick the notifier: explicit callback, then DEPOSIT_NOTIFIER=http, else noop."""
    if callback is not None:
        return CallbackDepositNotifier(callback)
    if settings.deposit_notifier == "http":
        if not settings.deposit_callback_url:
            raise ConfigError("DEPOSIT_NOTIFIER=http requires DEPOSIT_CALLBACK_URL")
        return HttpDepositNotifier(
            settings.deposit_callback_url,
            timeout_sec=settings.request_timeout_sec,
        )
    logger.info("deposit_notifier_disabled", notifier=settings.deposit_notifier)
    return NoopDepositNotifier()
