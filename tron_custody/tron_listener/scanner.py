"""
Block scanner: incremental, cursor-based search for transfers into an address.

Each call scans the blocks produced since the previous successful scan of the
same address. Blocks are fetched in fixed-size batches: the blocks within a
batch concurrently, batches one after another. The cursor moves only when the
whole range succeeded; on any failure the range is scanned again next time.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Protocol

from tron_custody.custody_logging import get_logger
from tron_custody.tron_client.normalizer import normalize_address
from tron_custody.tron_listener.models import ParsedTransaction
from tron_custody.tron_listener.parser import decode_transfer, is_transfer, parse_batch

logger = get_logger(__name__)

DEFAULT_SCAN_BATCH_SIZE = 10


class BlockSource(Protocol):
    async def current_height(self) -> int: ...

    async def block(self, height: int) -> dict[str, Any] | None: ...


class ScanCursorStore:
    """Last scanned block height per address. Thread-safe."""

    def __init__(self) -> None:
        self._cursors: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, address: str) -> int | None:
        with self._lock:
            return self._cursors.get(address)

    def advance(self, address: str, height: int) -> None:
        with self._lock:
            self._cursors[address] = height

    def __contains__(self, address: object) -> bool:
        with self._lock:
            return address in self._cursors


class BlockScanner:
    """
    Scans TRON blocks for TransferContract transactions into a watched address.

    Scans of the same address are serialized; different addresses scan
    concurrently. Duplicates across overlapping ranges are left to callers,
    which deduplicate by transaction hash.
    """

    def __init__(
        self,
        client: BlockSource,
        cursors: ScanCursorStore | None = None,
        *,
        batch_size: int = DEFAULT_SCAN_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._client = client
        self._cursors = cursors if cursors is not None else ScanCursorStore()
        self._batch_size = batch_size
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def cursors(self) -> ScanCursorStore:
        return self._cursors

    def _address_lock(self, address: str) -> asyncio.Lock:
        lock = self._locks.get(address)
        if lock is None:
            lock = self._locks.setdefault(address, asyncio.Lock())
        return lock

    async def scan(self, address: str) -> list[ParsedTransaction]:
        """Return parsed transfers into address found in blocks not scanned before."""
        raw = await self.scan_raw(address)
        return parse_batch(raw, address)

    async def scan_raw(self, address: str) -> list[dict[str, Any]]:
        """
        Return raw transfer transactions into address from (cursor, head].

        Returns [] when there is nothing new or when any fetch fails; the
        cursor is advanced to head only after the full range was fetched.
        """
        target = normalize_address(address)
        async with self._address_lock(target):
            try:
                head = await self._client.current_height()
                last = self._cursors.get(target)
                if last is None:
                    last = head - 1
                if head <= last:
                    logger.debug("scan_no_new_blocks", address=target, head=head)
                    return []

                logger.debug("scan_range", address=target, start=last + 1, end=head)
                matches: list[dict[str, Any]] = []
                for start in range(last + 1, head + 1, self._batch_size):
                    heights = range(start, min(start + self._batch_size, head + 1))
                    blocks = await asyncio.gather(*(self._client.block(h) for h in heights))
                    for block in blocks:
                        matches.extend(self._matching_transfers(block, target))
            except Exception as e:
                logger.error("scan_failed", address=target, error=str(e))
                return []

            self._cursors.advance(target, head)
            if matches:
                logger.debug("scan_transfers_found", address=target, count=len(matches))
            return matches

    @staticmethod
    def _matching_transfers(block: dict[str, Any] | None, target: str) -> list[dict[str, Any]]:
        if not block:
            return []
        out: list[dict[str, Any]] = []
        for tx in block.get("transactions") or []:
            if not isinstance(tx, dict) or not is_transfer(tx):
                continue
            _, to_address, _ = decode_transfer(tx)
            if to_address == target:
                out.append(tx)
        return out
