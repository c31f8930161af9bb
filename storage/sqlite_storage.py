from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from domain.balance import BalanceTotals
from domain.icons import DEFAULT_WALLET_ICON
from domain.transactions import Transaction, TransactionType
from domain.wallets import Wallet

from .base import Storage

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_WALLET_COLUMNS = "id, name, initial_balance, current_balance, image_uri, icon, created_at"
_TRANSACTION_COLUMNS = "id, wallet_id, type, amount, reason, image_uri, created_at"


class SQLiteStorage(Storage):
    """SQLite-backed row storage without business logic.

    Every write joins the caller's unit of work when one is open (see
    ``transaction``) and commits on its own otherwise.
    """

    def __init__(self, db_path: str = "liquidmoney.db") -> None:
        self._db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON;")
        self._conn.execute("PRAGMA journal_mode = WAL;")
        self._depth = 0

    @property
    def db_path(self) -> str:
        return self._db_path

    def close(self) -> None:
        self._conn.close()

    def initialize_schema(self, schema_path: str | None = None) -> None:
        if schema_path is None:
            schema_path = str(Path(__file__).resolve().parents[1] / "db" / "schema.sql")
        schema = Path(schema_path).read_text(encoding="utf-8")
        self._conn.executescript(schema)
        self._conn.commit()
        self._migrate()

    def schema_version(self) -> int:
        return int(self._conn.execute("PRAGMA user_version").fetchone()[0])

    def _wallet_columns(self) -> set[str]:
        return {str(row["name"]) for row in self._conn.execute("PRAGMA table_info(wallets)")}

    def _migrate(self) -> None:
        version = self.schema_version()
        if version >= SCHEMA_VERSION:
            return
        with self.transaction():
            if "icon" not in self._wallet_columns():
                logger.info("Migrating wallets table: adding icon column")
                self._conn.execute(
                    f"ALTER TABLE wallets ADD COLUMN icon TEXT DEFAULT '{DEFAULT_WALLET_ICON}'"
                )
        self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        self._conn.commit()
        logger.info("SQLite schema migrated from version %s to %s", version, SCHEMA_VERSION)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Reentrant unit of work; only the outermost level commits or rolls back."""
        outermost = self._depth == 0
        self._depth += 1
        try:
            if outermost:
                with self._conn:
                    yield self._conn
            else:
                yield self._conn
        finally:
            self._depth -= 1

    @staticmethod
    def _wallet_from_row(row: sqlite3.Row) -> Wallet:
        return Wallet(
            id=str(row["id"]),
            name=str(row["name"]),
            initial_balance=int(row["initial_balance"]),
            current_balance=int(row["current_balance"]),
            image_uri=row["image_uri"],
            icon=row["icon"] or DEFAULT_WALLET_ICON,
            created_at=str(row["created_at"]),
        )

    @staticmethod
    def _transaction_from_row(row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=str(row["id"]),
            wallet_id=str(row["wallet_id"]),
            type=TransactionType(str(row["type"])),
            amount=int(row["amount"]),
            reason=row["reason"],
            image_uri=row["image_uri"],
            created_at=str(row["created_at"]),
        )

    # wallets

    def get_wallets(self, *, newest_first: bool = True) -> list[Wallet]:
        direction = "DESC" if newest_first else "ASC"
        rows = self._conn.execute(
            f"""
            SELECT {_WALLET_COLUMNS}
            FROM wallets
            ORDER BY created_at {direction}, rowid {direction}
            """
        ).fetchall()
        return [self._wallet_from_row(row) for row in rows]

    def get_wallet(self, wallet_id: str) -> Wallet | None:
        row = self._conn.execute(
            f"SELECT {_WALLET_COLUMNS} FROM wallets WHERE id = ?",
            (str(wallet_id),),
        ).fetchone()
        if row is None:
            return None
        return self._wallet_from_row(row)

    def wallet_ids(self) -> list[str]:
        rows = self._conn.execute("SELECT id FROM wallets ORDER BY rowid").fetchall()
        return [str(row["id"]) for row in rows]

    def insert_wallet(self, wallet: Wallet) -> None:
        with self.transaction():
            self._conn.execute(
                f"""
                INSERT INTO wallets ({_WALLET_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(wallet.id),
                    str(wallet.name),
                    int(wallet.initial_balance),
                    int(wallet.current_balance),
                    wallet.image_uri,
                    str(wallet.icon or DEFAULT_WALLET_ICON),
                    str(wallet.created_at),
                ),
            )

    def update_wallet_fields(
        self,
        wallet_id: str,
        *,
        name: str,
        initial_balance: int,
        image_uri: str | None,
        icon: str,
    ) -> bool:
        with self.transaction():
            cursor = self._conn.execute(
                """
                UPDATE wallets
                SET name = ?, initial_balance = ?, image_uri = ?, icon = ?
                WHERE id = ?
                """,
                (str(name), int(initial_balance), image_uri, str(icon), str(wallet_id)),
            )
        return cursor.rowcount > 0

    def set_balances(
        self,
        wallet_id: str,
        *,
        name: str,
        initial_balance: int,
        current_balance: int,
        icon: str,
    ) -> bool:
        with self.transaction():
            cursor = self._conn.execute(
                """
                UPDATE wallets
                SET name = ?, initial_balance = ?, current_balance = ?, icon = ?
                WHERE id = ?
                """,
                (
                    str(name),
                    int(initial_balance),
                    int(current_balance),
                    str(icon),
                    str(wallet_id),
                ),
            )
        return cursor.rowcount > 0

    def get_initial_balance(self, wallet_id: str) -> int | None:
        row = self._conn.execute(
            "SELECT initial_balance FROM wallets WHERE id = ?",
            (str(wallet_id),),
        ).fetchone()
        if row is None:
            return None
        return int(row["initial_balance"])

    def set_current_balance(self, wallet_id: str, current_balance: int) -> None:
        with self.transaction():
            self._conn.execute(
                "UPDATE wallets SET current_balance = ? WHERE id = ?",
                (int(current_balance), str(wallet_id)),
            )

    def delete_wallet(self, wallet_id: str) -> bool:
        with self.transaction():
            cursor = self._conn.execute("DELETE FROM wallets WHERE id = ?", (str(wallet_id),))
        return cursor.rowcount > 0

    # transactions

    def get_transactions(
        self,
        wallet_id: str | None = None,
        filter_type: TransactionType | None = None,
        *,
        newest_first: bool = True,
        limit: int | None = None,
    ) -> list[Transaction]:
        clauses: list[str] = []
        params: list = []
        if wallet_id is not None:
            clauses.append("wallet_id = ?")
            params.append(str(wallet_id))
        if filter_type is not None:
            clauses.append("type = ?")
            params.append(TransactionType.parse(filter_type).value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if newest_first else "ASC"
        query = f"""
            SELECT {_TRANSACTION_COLUMNS}
            FROM transactions
            {where}
            ORDER BY created_at {direction}, rowid {direction}
        """
        if limit is not None:
            query += " LIMIT ?"
            params.append(int(limit))
        rows = self._conn.execute(query, params).fetchall()
        return [self._transaction_from_row(row) for row in rows]

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        row = self._conn.execute(
            f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            (str(transaction_id),),
        ).fetchone()
        if row is None:
            return None
        return self._transaction_from_row(row)

    def transaction_wallet_id(self, transaction_id: str) -> str | None:
        row = self._conn.execute(
            "SELECT wallet_id FROM transactions WHERE id = ?",
            (str(transaction_id),),
        ).fetchone()
        if row is None:
            return None
        return str(row["wallet_id"])

    def insert_transaction(self, transaction: Transaction) -> None:
        with self.transaction():
            self._conn.execute(
                f"""
                INSERT INTO transactions ({_TRANSACTION_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(transaction.id),
                    str(transaction.wallet_id),
                    transaction.type.value,
                    int(transaction.amount),
                    transaction.reason,
                    transaction.image_uri,
                    str(transaction.created_at),
                ),
            )

    def update_transaction_row(
        self,
        transaction_id: str,
        *,
        wallet_id: str,
        type: TransactionType,
        amount: int,
        reason: str | None,
        image_uri: str | None,
    ) -> bool:
        with self.transaction():
            cursor = self._conn.execute(
                """
                UPDATE transactions
                SET wallet_id = ?, type = ?, amount = ?, reason = ?, image_uri = ?
                WHERE id = ?
                """,
                (
                    str(wallet_id),
                    TransactionType.parse(type).value,
                    int(amount),
                    reason,
                    image_uri,
                    str(transaction_id),
                ),
            )
        return cursor.rowcount > 0

    def delete_transaction(self, transaction_id: str) -> bool:
        with self.transaction():
            cursor = self._conn.execute(
                "DELETE FROM transactions WHERE id = ?",
                (str(transaction_id),),
            )
        return cursor.rowcount > 0

    # aggregates

    def sum_by_type(
        self,
        wallet_id: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> BalanceTotals:
        clauses: list[str] = []
        params: list = []
        if wallet_id is not None:
            clauses.append("wallet_id = ?")
            params.append(str(wallet_id))
        if start is not None:
            clauses.append("created_at >= ?")
            params.append(str(start))
        if end is not None:
            clauses.append("created_at < ?")
            params.append(str(end))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._conn.execute(
            f"""
            SELECT type, COALESCE(SUM(amount), 0) AS total
            FROM transactions
            {where}
            GROUP BY type
            """,
            params,
        ).fetchall()
        totals = {str(row["type"]): int(row["total"]) for row in rows}
        return BalanceTotals(
            total_in=totals.get(TransactionType.IN.value, 0),
            total_out=totals.get(TransactionType.OUT.value, 0),
        )

    def count_transactions(self, wallet_id: str | None = None) -> int:
        if wallet_id is None:
            row = self._conn.execute("SELECT COUNT(*) FROM transactions").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE wallet_id = ?",
                (str(wallet_id),),
            ).fetchone()
        return int(row[0])

    def delete_all(self) -> None:
        with self.transaction():
            self._conn.execute("DELETE FROM transactions")
            self._conn.execute("DELETE FROM wallets")
