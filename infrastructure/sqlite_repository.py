from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime

from app.reconciliation import BalanceReconciler
from domain.balance import BalanceDrift, BalanceTotals
from domain.icons import normalize_icon
from domain.transactions import Transaction, TransactionType
from domain.validation import format_timestamp, utc_now
from domain.wallets import Wallet
from infrastructure.repositories import LedgerRepository
from storage.sqlite_storage import SQLiteStorage

logger = logging.getLogger(__name__)


class SQLiteLedgerRepository(LedgerRepository):
    """LedgerRepository backed by SQLite.

    Each mutation and the reconciliation it triggers run in one SQLite
    transaction, so callers never observe a ledger change without the matching
    balance update.
    """

    def __init__(
        self,
        db_path: str = "liquidmoney.db",
        schema_path: str | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = SQLiteStorage(db_path)
        self._storage.initialize_schema(schema_path)
        self._reconciler = BalanceReconciler(self._storage)
        self._clock = clock

    @property
    def storage(self) -> SQLiteStorage:
        return self._storage

    def close(self) -> None:
        self._storage.close()

    def _now(self) -> str:
        return format_timestamp(self._clock())

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    # wallets

    def create_wallet(
        self,
        name: str,
        initial_balance: int,
        image_uri: str | None = None,
        icon: str | None = None,
    ) -> Wallet:
        wallet = Wallet(
            id=self._new_id(),
            name=str(name),
            initial_balance=int(initial_balance),
            current_balance=int(initial_balance),
            image_uri=image_uri or None,
            icon=normalize_icon(icon),
            created_at=self._now(),
        )
        self._storage.insert_wallet(wallet)
        return wallet

    def update_wallet(
        self,
        wallet_id: str,
        name: str,
        initial_balance: int,
        image_uri: str | None = None,
        icon: str | None = None,
    ) -> None:
        with self._storage.transaction():
            updated = self._storage.update_wallet_fields(
                wallet_id,
                name=str(name),
                initial_balance=int(initial_balance),
                image_uri=image_uri or None,
                icon=normalize_icon(icon),
            )
            if updated:
                self._reconciler.recalculate(wallet_id)

    def update_wallet_direct(
        self,
        wallet_id: str,
        name: str,
        new_current_balance: int,
        icon: str | None = None,
    ) -> None:
        self._reconciler.update_wallet_direct(
            wallet_id, str(name), int(new_current_balance), icon
        )

    def delete_wallet(self, wallet_id: str) -> None:
        self._storage.delete_wallet(wallet_id)

    def get_all_wallets(self) -> list[Wallet]:
        return self._storage.get_wallets()

    def get_wallet_by_id(self, wallet_id: str) -> Wallet | None:
        return self._storage.get_wallet(wallet_id)

    # transactions

    def create_transaction(
        self,
        wallet_id: str,
        type: TransactionType | str,
        amount: int,
        reason: str | None = None,
        image_uri: str | None = None,
    ) -> Transaction:
        transaction = Transaction(
            id=self._new_id(),
            wallet_id=str(wallet_id),
            type=TransactionType.parse(type),
            amount=int(amount),
            reason=reason,
            image_uri=image_uri or None,
            created_at=self._now(),
        )
        with self._storage.transaction():
            self._storage.insert_transaction(transaction)
            self._reconciler.recalculate(transaction.wallet_id)
        return transaction

    def update_transaction(
        self,
        transaction_id: str,
        wallet_id: str,
        type: TransactionType | str,
        amount: int,
        reason: str | None = None,
        image_uri: str | None = None,
    ) -> None:
        with self._storage.transaction():
            old_wallet_id = self._storage.transaction_wallet_id(transaction_id)
            updated = self._storage.update_transaction_row(
                transaction_id,
                wallet_id=str(wallet_id),
                type=TransactionType.parse(type),
                amount=int(amount),
                reason=reason,
                image_uri=image_uri or None,
            )
            if not updated:
                return
            self._reconciler.recalculate(str(wallet_id))
            if old_wallet_id is not None and old_wallet_id != str(wallet_id):
                self._reconciler.recalculate(old_wallet_id)

    def delete_transaction(self, transaction_id: str) -> None:
        with self._storage.transaction():
            wallet_id = self._storage.transaction_wallet_id(transaction_id)
            if wallet_id is None:
                return
            self._storage.delete_transaction(transaction_id)
            self._reconciler.recalculate(wallet_id)

    def get_transaction_by_id(self, transaction_id: str) -> Transaction | None:
        return self._storage.get_transaction(transaction_id)

    def get_transactions_by_wallet(
        self,
        wallet_id: str,
        filter_type: TransactionType | str | None = None,
    ) -> list[Transaction]:
        parsed = TransactionType.parse(filter_type) if filter_type else None
        return self._storage.get_transactions(wallet_id, parsed)

    # reconciliation

    def recalculate_balance(self, wallet_id: str) -> int | None:
        return self._reconciler.recalculate(wallet_id)

    def recalculate_all(self) -> dict[str, int]:
        return self._reconciler.recalculate_all()

    def find_balance_drift(self) -> list[BalanceDrift]:
        return self._reconciler.find_drift()

    # aggregates

    def transaction_totals(
        self,
        wallet_id: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> BalanceTotals:
        return self._storage.sum_by_type(wallet_id, start, end)

    def count_transactions(self, wallet_id: str | None = None) -> int:
        return self._storage.count_transactions(wallet_id)

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return self._storage.get_transactions(limit=int(limit))

    # backup

    def export_snapshot(self) -> tuple[list[Wallet], list[Transaction]]:
        wallets = self._storage.get_wallets(newest_first=False)
        transactions = self._storage.get_transactions(newest_first=False)
        return wallets, transactions

    def replace_all_data(
        self, wallets: Sequence[Wallet], transactions: Sequence[Transaction]
    ) -> None:
        with self._storage.transaction():
            self._storage.delete_all()
            for wallet in wallets:
                self._storage.insert_wallet(wallet)
            for transaction in transactions:
                self._storage.insert_transaction(transaction)
            self._reconciler.recalculate_all()
        logger.info(
            "Ledger replaced wallets=%s transactions=%s",
            len(wallets),
            len(transactions),
        )
