"""
TRON transaction parser: raw node payloads to ParsedTransaction.

Purely structural: reads the first contract of a transaction, its return
code and fee, and renders Sun amounts as decimal TRX. Total over
well-formed node output; absent optional fields fall back to defaults
instead of raising.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from tron_custody.custody_logging import get_logger
from tron_custody.tron_client.normalizer import normalize_address
from tron_custody.tron_listener.models import ParsedTransaction, TransactionStatus
from tron_custody.utils.amounts import format_sun

logger = get_logger(__name__)

TRANSFER_CONTRACT = "TransferContract"
SUCCESS_RET = "SUCCESS"


def _first_contract(raw: dict[str, Any]) -> dict[str, Any] | None:
    raw_data = raw.get("raw_data")
    if not isinstance(raw_data, dict):
        return None
    contracts = raw_data.get("contract")
    if not isinstance(contracts, list) or not contracts:
        return None
    first = contracts[0]
    return first if isinstance(first, dict) else None


def _first_ret(raw: dict[str, Any]) -> dict[str, Any] | None:
    ret = raw.get("ret")
    if isinstance(ret, list) and ret and isinstance(ret[0], dict):
        return ret[0]
    return None


def is_transfer(raw: dict[str, Any]) -> bool:
    """True when the first contract of raw is a native TRX transfer."""
    contract = _first_contract(raw)
    return contract is not None and contract.get("type") == TRANSFER_CONTRACT


def decode_transfer(raw: dict[str, Any]) -> tuple[str, str, int]:
    """
    Return (from, to, amount_sun) of the first contract.

    Only TransferContract carries a value; any other contract type yields
    ("", "", 0).
    """
    contract = _first_contract(raw)
    if contract is None or contract.get("type") != TRANSFER_CONTRACT:
        return "", "", 0
    value = (contract.get("parameter") or {}).get("value") or {}
    try:
        amount = int(value.get("amount") or 0)
    except (TypeError, ValueError):
        amount = 0
    return (
        normalize_address(value.get("owner_address")),
        normalize_address(value.get("to_address")),
        amount,
    )


def _iso_from_millis(value: Any) -> str:
    """Render epoch milliseconds like JavaScript's toISOString(); "" when unusable."""
    try:
        millis = int(value)
        moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return ""
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{millis % 1000:03d}Z"


def parse(raw: dict[str, Any], watched_address: str | None = None) -> ParsedTransaction:
    """
    Parse a single raw transaction into a ParsedTransaction.

    Status is Failed when the first return entry exists and is not SUCCESS.
    Fee comes from ret[0].fee, then the transaction's own fee field, else "0".
    confirmations carries blockNumber when the node reported one.
    """
    status = TransactionStatus.SUCCESS
    is_error = "0"
    ret = _first_ret(raw)
    if ret is not None and ret.get("contractRet") != SUCCESS_RET:
        status = TransactionStatus.FAILED
        is_error = "1"

    from_address, to_address, amount_sun = decode_transfer(raw)
    if not is_transfer(raw):
        logger.debug(
            "parse_non_transfer_contract",
            tx_hash=raw.get("txID"),
            watched_address=watched_address,
        )

    fee = "0"
    if ret is not None and ret.get("fee"):
        fee = format_sun(ret.get("fee"))
    elif raw.get("fee"):
        fee = format_sun(raw.get("fee"))

    block_number = raw.get("blockNumber")
    confirmations = str(block_number) if block_number else "0"

    raw_data = raw.get("raw_data") if isinstance(raw.get("raw_data"), dict) else {}

    return ParsedTransaction(
        hash=str(raw.get("txID") or ""),
        from_address=from_address,
        to_address=to_address,
        amount=format_sun(amount_sun),
        fee=fee,
        status=status,
        is_error=is_error,
        confirmations=confirmations,
        timestamp=_iso_from_millis(raw_data.get("timestamp")),
    )


def parse_batch(
    raw_list: list[dict[str, Any]],
    watched_address: str | None = None,
) -> list[ParsedTransaction]:
    """Parse a list of raw transactions, skipping entries that are not dicts."""
    return [parse(raw, watched_address) for raw in raw_list if isinstance(raw, dict)]
