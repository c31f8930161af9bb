from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from domain.balance import BalanceTotals
from domain.transactions import Transaction, TransactionType
from domain.wallets import Wallet


class Storage(Protocol):
    """Low-level row storage contract for ledger persistence adapters."""

    def transaction(self) -> AbstractContextManager:
        ...

    def get_wallets(self, *, newest_first: bool = True) -> list[Wallet]:
        ...

    def get_wallet(self, wallet_id: str) -> Wallet | None:
        ...

    def insert_wallet(self, wallet: Wallet) -> None:
        ...

    def delete_wallet(self, wallet_id: str) -> bool:
        ...

    def get_initial_balance(self, wallet_id: str) -> int | None:
        ...

    def set_current_balance(self, wallet_id: str, current_balance: int) -> None:
        ...

    def get_transactions(
        self,
        wallet_id: str | None = None,
        filter_type: TransactionType | None = None,
        *,
        newest_first: bool = True,
        limit: int | None = None,
    ) -> list[Transaction]:
        ...

    def insert_transaction(self, transaction: Transaction) -> None:
        ...

    def sum_by_type(
        self,
        wallet_id: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> BalanceTotals:
        ...
