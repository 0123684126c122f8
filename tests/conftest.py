"""
Pytest fixtures for TRON custody tests.

Uses a temporary SQLite ledger and an in-memory fake chain client; nothing
here talks to a real node.
"""

from __future__ import annotations

import hashlib
from typing import Any

import pytest

from tron_custody.core.exceptions import NetworkError
from tron_custody.database.ledger import LedgerStore
from tron_custody.security.encryption import SecretCipher
from tron_custody.tron_client.client import BroadcastResult
from tron_custody.tron_client.normalizer import hex_to_base58

WATCHED_HEX = "41" + "11" * 20
SENDER_HEX = "41" + "22" * 20
OTHER_HEX = "41" + "33" * 20
WATCHED = hex_to_base58(WATCHED_HEX)
SENDER = hex_to_base58(SENDER_HEX)
OTHER = hex_to_base58(OTHER_HEX)

# Valid secp256k1 secret (any value in [1, n-1])
PRIVATE_KEY = "01" * 32


def make_transfer_tx(
    tx_id: str,
    *,
    from_hex: str = SENDER_HEX,
    to_hex: str = WATCHED_HEX,
    amount: int = 1_000_000,
    contract_ret: str | None = "SUCCESS",
    fee: int | None = None,
    contract_type: str = "TransferContract",
    timestamp: int = 1_700_000_000_123,
) -> dict[str, Any]:
    """Raw transaction in the node's default (hex address) form."""
    tx: dict[str, Any] = {
        "txID": tx_id,
        "raw_data": {
            "contract": [
                {
                    "type": contract_type,
                    "parameter": {
                        "value": {
                            "owner_address": from_hex,
                            "to_address": to_hex,
                            "amount": amount,
                        },
                    },
                }
            ],
            "timestamp": timestamp,
        },
    }
    if contract_ret is not None:
        ret: dict[str, Any] = {"contractRet": contract_ret}
        if fee is not None:
            ret["fee"] = fee
        tx["ret"] = [ret]
    return tx


def make_block(height: int, *transactions: dict[str, Any]) -> dict[str, Any]:
    return {
        "blockID": f"{height:064x}",
        "block_header": {"raw_data": {"number": height}},
        "transactions": list(transactions),
    }


def make_unsigned_tx(raw_data_hex: str = "0a02beef") -> dict[str, Any]:
    """Unsigned transaction whose txID is consistent with raw_data_hex."""
    return {
        "txID": hashlib.sha256(bytes.fromhex(raw_data_hex)).hexdigest(),
        "raw_data_hex": raw_data_hex,
        "raw_data": {"contract": []},
        "visible": True,
    }


class FakeTronClient:
    """In-memory stand-in for TronChainClient. Records every call."""

    def __init__(self, head: int = 100) -> None:
        self.head = head
        self.head_error: Exception | None = None
        self.blocks: dict[int, dict[str, Any]] = {}
        self.failing_heights: set[int] = set()
        self.block_calls: list[int] = []
        self.accounts: dict[str, dict[str, Any]] = {}
        self.account_error: Exception | None = None
        self.bandwidth_points = 0
        self.tx_info: dict[str, dict[str, Any]] = {}
        self.tx_details: dict[str, dict[str, Any]] = {}
        self.unsigned = make_unsigned_tx()
        self.build_error: Exception | None = None
        self.build_calls: list[tuple[str, str, int]] = []
        self.sign_calls: list[str] = []
        self.broadcast_result = BroadcastResult(accepted=True, tx_id=self.unsigned["txID"], raw={"result": True})
        self.closed = False

    def add_block(self, height: int, *transactions: dict[str, Any]) -> None:
        self.blocks[height] = make_block(height, *transactions)

    async def current_height(self) -> int:
        if self.head_error is not None:
            raise self.head_error
        return self.head

    async def block(self, height: int) -> dict[str, Any] | None:
        self.block_calls.append(height)
        if height in self.failing_heights:
            raise NetworkError(f"block {height} unavailable")
        return self.blocks.get(height)

    async def account(self, address: str) -> dict[str, Any] | None:
        if self.account_error is not None:
            raise self.account_error
        return self.accounts.get(address)

    async def balance(self, address: str) -> int:
        account = await self.account(address)
        return int((account or {}).get("balance") or 0)

    async def bandwidth(self, address: str) -> int:
        return self.bandwidth_points

    async def transaction_info(self, tx_hash: str) -> dict[str, Any] | None:
        return self.tx_info.get(tx_hash)

    async def transaction_details(self, tx_hash: str) -> dict[str, Any] | None:
        return self.tx_details.get(tx_hash)

    async def build_transfer(self, from_address: str, to_address: str, amount_sun: int) -> dict[str, Any]:
        self.build_calls.append((from_address, to_address, amount_sun))
        if self.build_error is not None:
            raise self.build_error
        return dict(self.unsigned)

    def sign(self, transaction: dict[str, Any], private_key: str) -> dict[str, Any]:
        self.sign_calls.append(private_key)
        signed = dict(transaction)
        signed["signature"] = ["00" * 65]
        return signed

    async def broadcast(self, signed_transaction: dict[str, Any]) -> BroadcastResult:
        return self.broadcast_result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeTronClient()


@pytest.fixture
def ledger(tmp_path, monkeypatch):
    """LedgerStore on a temporary SQLite file with tables created."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("CUSTODY_DB_URL", raising=False)
    store = LedgerStore(f"sqlite:///{tmp_path / 'ledger.db'}")
    store.init_db()
    yield store
    store.dispose()


@pytest.fixture
def cipher():
    return SecretCipher(SecretCipher.generate_key())
