"""
Tests for TronChainClient against a mocked TronGrid HTTP API (httpx.MockTransport).
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conftest import OTHER, WATCHED, make_unsigned_tx
from tron_custody.core.exceptions import ConfigError, NetworkError
from tron_custody.tron_client.client import API_KEY_HEADER, TronChainClient

RPC = "https://api.trongrid.io"


def _client(routes: dict, seen: list | None = None, **kwargs) -> TronChainClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        reply = routes.get(request.url.path)
        if reply is None:
            return httpx.Response(404)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TronChainClient(RPC, http_client=http, **kwargs)


def test_current_height_and_api_key_header():
    seen: list[httpx.Request] = []
    client = _client(
        {"/wallet/getnowblock": {"block_header": {"raw_data": {"number": 61_000_000}}}},
        seen,
        api_key="secret-key",
    )
    assert asyncio.run(client.current_height()) == 61_000_000
    assert seen[0].headers[API_KEY_HEADER] == "secret-key"
    assert str(seen[0].url) == f"{RPC}/wallet/getnowblock"


def test_block_empty_reply_is_none():
    seen: list[httpx.Request] = []
    client = _client({"/wallet/getblockbynum": {}}, seen)
    assert asyncio.run(client.block(5)) is None
    assert json.loads(seen[0].content) == {"num": 5}


def test_balance_and_unactivated_account():
    client = _client({"/wallet/getaccount": {"address": WATCHED, "balance": 1_500_000}})
    assert asyncio.run(client.balance(WATCHED)) == 1_500_000

    empty = _client({"/wallet/getaccount": {}})
    assert asyncio.run(empty.account(WATCHED)) is None
    assert asyncio.run(empty.balance(WATCHED)) == 0


def test_bandwidth_sums_free_and_staked():
    client = _client(
        {
            "/wallet/getaccountnet": {
                "freeNetLimit": 600,
                "freeNetUsed": 100,
                "NetLimit": 1000,
                "NetUsed": 250,
            }
        }
    )
    assert asyncio.run(client.bandwidth(WATCHED)) == 1250


def test_http_error_raises_network_error():
    client = _client({"/wallet/getnowblock": httpx.Response(503)})
    with pytest.raises(NetworkError):
        asyncio.run(client.current_height())


def test_node_error_payload_raises_network_error():
    client = _client({"/wallet/getaccount": {"Error": "invalid address"}})
    with pytest.raises(NetworkError, match="invalid address"):
        asyncio.run(client.account("bogus"))


def test_invalid_json_raises_network_error():
    client = _client({"/wallet/getnowblock": httpx.Response(200, content=b"<html>")})
    with pytest.raises(NetworkError):
        asyncio.run(client.current_height())


def test_build_transfer_validates_txid():
    seen: list[httpx.Request] = []
    unsigned = make_unsigned_tx()
    client = _client({"/wallet/createtransaction": unsigned}, seen)
    tx = asyncio.run(client.build_transfer(WATCHED, OTHER, 1_000_000))
    assert tx["txID"] == unsigned["txID"]
    body = json.loads(seen[0].content)
    assert body == {"owner_address": WATCHED, "to_address": OTHER, "amount": 1_000_000, "visible": True}

    tampered = dict(unsigned, txID="00" * 32)
    bad = _client({"/wallet/createtransaction": tampered})
    with pytest.raises(NetworkError):
        asyncio.run(bad.build_transfer(WATCHED, OTHER, 1))


def test_broadcast_acceptance_and_rejection():
    signed = dict(make_unsigned_tx(), signature=["ab" * 65])
    ok = _client({"/wallet/broadcasttransaction": {"result": True, "txid": signed["txID"]}})
    result = asyncio.run(ok.broadcast(signed))
    assert result.accepted
    assert result.tx_id == signed["txID"]

    refused = _client(
        {"/wallet/broadcasttransaction": {"code": "DUP_TRANSACTION_ERROR", "message": "647570"}}
    )
    result = asyncio.run(refused.broadcast(signed))
    assert not result.accepted
    assert result.message == "dup"


def test_transaction_lookups():
    client = _client(
        {
            "/wallet/gettransactioninfobyid": {"id": "h", "fee": 100},
            "/wallet/gettransactionbyid": {},
        }
    )
    assert asyncio.run(client.transaction_info("h")) == {"id": "h", "fee": 100}
    assert asyncio.run(client.transaction_details("h")) is None


def test_rejects_malformed_rpc_url():
    with pytest.raises(ConfigError):
        TronChainClient("ftp://example.com")
    with pytest.raises(ConfigError):
        TronChainClient("")


def test_trailing_slash_is_stripped():
    client = _client({})
    assert client.rpc_url == RPC
    assert TronChainClient(RPC + "/").rpc_url == RPC
