"""
Ledger store: SQLAlchemy access to transaction rows and wallet secrets.

Uses the configured database URL (PostgreSQL in production, SQLite for local
runs and tests). The store owns its engine and session factory so tests can
build isolated instances. Methods are synchronous; async callers run them in
the default executor.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from tron_custody.custody_logging import get_logger
from tron_custody.database.models import Base, LedgerStatus, LedgerTransaction, WalletData

logger = get_logger(__name__)


def _redact(url: str) -> str:
    return url.split("?")[0].split("//")[-1].split("@")[-1]


class LedgerStore:
    """Transaction-ledger and wallet-secret tables behind one engine."""

    def __init__(self, database_url: str) -> None:
        connect_args: dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._url = database_url
        self._engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Context manager for a single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        Base.metadata.create_all(bind=self._engine)
        logger.info("ledger_init_db", url=_redact(self._url))

    def dispose(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Transaction rows
    # ------------------------------------------------------------------

    def add_transaction(
        self,
        *,
        user_id: str,
        tx_type: str,
        wallet_id: str | None = None,
        amount: str | None = None,
        fee: str | None = None,
        trx_id: str | None = None,
        status: LedgerStatus = LedgerStatus.PENDING,
        transaction_id: str | None = None,
    ) -> str:
        """Insert a ledger row and return its id."""
        with self.session_scope() as session:
            row = LedgerTransaction(
                user_id=user_id,
                wallet_id=wallet_id,
                type=tx_type,
                status=status.value,
                amount=amount,
                fee=fee,
                trx_id=trx_id,
            )
            if transaction_id:
                row.id = transaction_id
            session.add(row)
            session.flush()
            return row.id

    def get_transaction(self, transaction_id: str) -> dict[str, Any] | None:
        with self.session_scope() as session:
            row = session.get(LedgerTransaction, transaction_id)
            return row.to_dict() if row else None

    def has_transaction(self, trx_id: str, user_id: str) -> bool:
        """True when the ledger already holds a row for this chain hash and user."""
        with self.session_scope() as session:
            row = (
                session.query(LedgerTransaction.id)
                .filter(LedgerTransaction.trx_id == trx_id, LedgerTransaction.user_id == user_id)
                .first()
            )
            return row is not None

    def _update_transaction(self, transaction_id: str, updates: dict[str, Any]) -> bool:
        updates["updated_at"] = int(time.time())
        with self.session_scope() as session:
            count = (
                session.query(LedgerTransaction)
                .filter(LedgerTransaction.id == transaction_id)
                .update(updates)
            )
        if not count:
            logger.warning("ledger_transaction_missing", transaction_id=transaction_id)
        return bool(count)

    def mark_completed(self, transaction_id: str, trx_id: str) -> bool:
        return self._update_transaction(
            transaction_id,
            {"status": LedgerStatus.COMPLETED.value, "trx_id": trx_id},
        )

    def mark_failed(self, transaction_id: str, description: str) -> bool:
        return self._update_transaction(
            transaction_id,
            {"status": LedgerStatus.FAILED.value, "description": description[:1024]},
        )

    # ------------------------------------------------------------------
    # Wallet secrets
    # ------------------------------------------------------------------

    def get_wallet_secret(self, wallet_id: str, currency: str, chain: str) -> str | None:
        """Return the encrypted secret for (wallet_id, currency, chain), or None."""
        with self.session_scope() as session:
            row = (
                session.query(WalletData.data)
                .filter(
                    WalletData.wallet_id == wallet_id,
                    WalletData.currency == currency,
                    WalletData.chain == chain,
                )
                .first()
            )
            return row[0] if row else None

    def save_wallet_secret(self, wallet_id: str, currency: str, chain: str, data: str) -> None:
        """Insert or replace the encrypted secret for (wallet_id, currency, chain)."""
        with self.session_scope() as session:
            row = (
                session.query(WalletData)
                .filter(
                    WalletData.wallet_id == wallet_id,
                    WalletData.currency == currency,
                    WalletData.chain == chain,
                )
                .first()
            )
            if row is None:
                session.add(WalletData(wallet_id=wallet_id, currency=currency, chain=chain, data=data))
            else:
                row.data = data
        logger.info("wallet_secret_saved", wallet_id=wallet_id, currency=currency, chain=chain)
