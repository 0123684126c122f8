"""
TRON full-node HTTP client: the only component that talks to the chain.

Wraps the TronGrid /wallet/* endpoints used by the scanner, processor,
withdrawal executor and fee estimator. Every call is a single request: no
retries here, callers decide retry policy. Transport failures, non-2xx
replies and node-side errors raise NetworkError.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

import httpx

from tron_custody.config.env import mask_url, validate_rpc_url
from tron_custody.core.exceptions import NetworkError
from tron_custody.custody_logging import get_logger
from tron_custody.tron_client.keys import sign_transaction
from tron_custody.tron_client.normalizer import normalize_address

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 15.0
API_KEY_HEADER = "TRON-PRO-API-KEY"


@dataclass(frozen=True)
class BroadcastResult:
    """Node reply to /wallet/broadcasttransaction."""

    accepted: bool
    tx_id: str | None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        """Human-readable rejection reason (node sends it hex-encoded)."""
        msg = self.raw.get("message") or ""
        try:
            return bytes.fromhex(msg).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return str(msg)


class TronChainClient:
    """
    Async client for a TRON full node (TronGrid-compatible HTTP API).

    Addresses are sent with visible=true (base58). Blocks are requested in
    the node's default hex form; the parser normalizes them.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        api_key: str | None = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            rpc_url: Full-node base URL (e.g. https://api.trongrid.io). ConfigError if malformed.
            api_key: Optional TronGrid API key, sent as TRON-PRO-API-KEY.
            timeout_sec: HTTP timeout for each request.
            http_client: Preconfigured client (tests pass one with a MockTransport).
        """
        self._rpc_url = validate_rpc_url(rpc_url)
        self._headers = {API_KEY_HEADER: api_key} if api_key else {}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))
        logger.debug(
            "tron_client_initialized",
            rpc_url=mask_url(self._rpc_url),
            api_key_set=bool(api_key),
        )

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST one /wallet/* call; raise NetworkError on transport, HTTP or decode failure."""
        url = f"{self._rpc_url}{path}"
        try:
            resp = await self._client.post(url, json=body, headers=self._headers)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise NetworkError(f"TRON RPC {path} failed: {e}") from e
        except ValueError as e:
            raise NetworkError(f"TRON RPC {path} returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise NetworkError(f"TRON RPC {path} returned unexpected payload")
        if "Error" in data:
            raise NetworkError(f"TRON RPC {path} error: {data['Error']}")
        return data

    async def current_height(self) -> int:
        """Return the number of the latest block."""
        data = await self._post("/wallet/getnowblock", {})
        try:
            return int(data["block_header"]["raw_data"]["number"])
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError("getnowblock reply has no block number") from e

    async def block(self, height: int) -> dict[str, Any] | None:
        """Return the block at height, or None when the node does not have it."""
        data = await self._post("/wallet/getblockbynum", {"num": int(height)})
        return data or None

    async def account(self, address: str) -> dict[str, Any] | None:
        """Return account info, or None for an address never activated on chain."""
        data = await self._post(
            "/wallet/getaccount",
            {"address": normalize_address(address), "visible": True},
        )
        return data or None

    async def balance(self, address: str) -> int:
        """Return the TRX balance in Sun (0 for an unactivated account)."""
        account = await self.account(address)
        if not account:
            return 0
        return int(account.get("balance") or 0)

    async def bandwidth(self, address: str) -> int:
        """Return bandwidth points currently available to address (free + staked)."""
        data = await self._post(
            "/wallet/getaccountnet",
            {"address": normalize_address(address), "visible": True},
        )
        free = int(data.get("freeNetLimit") or 0) - int(data.get("freeNetUsed") or 0)
        staked = int(data.get("NetLimit") or 0) - int(data.get("NetUsed") or 0)
        return free + staked

    async def transaction_info(self, tx_hash: str) -> dict[str, Any] | None:
        """Return the execution receipt (fee, blockNumber, ...) or None if unknown."""
        data = await self._post("/wallet/gettransactioninfobyid", {"value": tx_hash})
        return data or None

    async def transaction_details(self, tx_hash: str) -> dict[str, Any] | None:
        """Return the transaction body (raw_data, ret, ...) or None if unknown."""
        data = await self._post("/wallet/gettransactionbyid", {"value": tx_hash})
        return data or None

    async def build_transfer(self, from_address: str, to_address: str, amount_sun: int) -> dict[str, Any]:
        """Ask the node to build an unsigned TransferContract transaction."""
        data = await self._post(
            "/wallet/createtransaction",
            {
                "owner_address": normalize_address(from_address),
                "to_address": normalize_address(to_address),
                "amount": int(amount_sun),
                "visible": True,
            },
        )
        tx_id = data.get("txID")
        raw_data_hex = data.get("raw_data_hex")
        if not tx_id or not raw_data_hex:
            raise NetworkError("createtransaction reply has no txID/raw_data_hex")
        try:
            digest = hashlib.sha256(bytes.fromhex(raw_data_hex)).hexdigest()
        except ValueError as e:
            raise NetworkError("createtransaction raw_data_hex is not hex") from e
        if digest != tx_id.lower():
            raise NetworkError("createtransaction txID does not match raw_data_hex")
        return data

    def sign(self, transaction: dict[str, Any], private_key: str) -> dict[str, Any]:
        """Sign locally; the private key never leaves the process."""
        return sign_transaction(transaction, private_key)

    async def broadcast(self, signed_transaction: dict[str, Any]) -> BroadcastResult:
        """Submit a signed transaction. A refusal is returned, not raised."""
        data = await self._post("/wallet/broadcasttransaction", signed_transaction)
        accepted = data.get("result") is True
        tx_id = data.get("txid") or signed_transaction.get("txID")
        return BroadcastResult(accepted=accepted, tx_id=tx_id, raw=data)
