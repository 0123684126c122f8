"""
Data models for TRON listener output.

ParsedTransaction is the canonical, immutable record produced by the parser
and cached per address. DepositDescriptor is what the deposit notifier
receives for a newly recognized deposit.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

CHAIN = "TRON"
CHAIN_CURRENCY = "TRX"


class TransactionStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"


@dataclass(frozen=True)
class CustodialWallet:
    """Reference to an external custodial wallet row."""

    id: str
    user_id: str


@dataclass(frozen=True)
class ParsedTransaction:
    """
    Normalized TRON transaction as seen from a watched address.

    Amounts and fees are decimal TRX strings; addresses are base58check.
    """

    hash: str
    from_address: str
    to_address: str
    amount: str
    fee: str
    status: TransactionStatus
    is_error: str
    confirmations: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict with camelCase keys."""
        return {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "amount": self.amount,
            "fee": self.fee,
            "status": self.status.value,
            "isError": self.is_error,
            "confirmations": self.confirmations,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedTransaction":
        return cls(
            hash=str(data.get("hash") or ""),
            from_address=str(data.get("from") or ""),
            to_address=str(data.get("to") or ""),
            amount=str(data.get("amount") or "0"),
            fee=str(data.get("fee") or "0"),
            status=TransactionStatus(data.get("status") or TransactionStatus.SUCCESS.value),
            is_error=str(data.get("isError") or "0"),
            confirmations=str(data.get("confirmations") or "0"),
            timestamp=str(data.get("timestamp") or ""),
        )


@dataclass(frozen=True)
class DepositDescriptor:
    """Normalized deposit handed to the ledger for crediting."""

    id: str
    hash: str
    from_address: str
    address: str
    amount: str
    fee: str
    chain: str = CHAIN
    contract_type: str = "NATIVE"
    type: str = "DEPOSIT"
    status: str = "COMPLETED"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "contractType": data["contract_type"],
            "id": data["id"],
            "chain": data["chain"],
            "hash": data["hash"],
            "type": data["type"],
            "from": data["from_address"],
            "address": data["address"],
            "amount": data["amount"],
            "fee": data["fee"],
            "status": data["status"],
        }
