"""
SQLAlchemy models for the two external ledger records this service touches.

transactions: ledger rows; deposits are looked up by (trx_id, user_id) for
idempotency, withdrawals are transitioned PENDING -> COMPLETED | FAILED.
wallet_data: encrypted key material per (wallet_id, currency, chain).
"""

from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Any

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class LedgerStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


def _new_id() -> str:
    return str(uuid.uuid4())


class LedgerTransaction(Base):
    """One ledger row (deposit or withdrawal) owned by the external ledger."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    wallet_id = Column(String(36), nullable=True, index=True)
    type = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default=LedgerStatus.PENDING.value, index=True)
    amount = Column(String(64), nullable=True)  # decimal TRX as string; avoids float rounding
    fee = Column(String(64), nullable=True)
    trx_id = Column(String(128), nullable=True, index=True)
    description = Column(String(1024), nullable=True)
    created_at = Column(Integer, nullable=False, default=lambda: int(time.time()))
    updated_at = Column(Integer, nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "wallet_id": self.wallet_id,
            "type": self.type,
            "status": self.status,
            "amount": self.amount,
            "fee": self.fee,
            "trx_id": self.trx_id,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class WalletData(Base):
    """Encrypted wallet secret (Fernet token of the JSON key payload)."""

    __tablename__ = "wallet_data"
    __table_args__ = (UniqueConstraint("wallet_id", "currency", "chain", name="uq_wallet_data_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_id = Column(String(36), nullable=False, index=True)
    currency = Column(String(16), nullable=False)
    chain = Column(String(16), nullable=False)
    data = Column(Text, nullable=False)
