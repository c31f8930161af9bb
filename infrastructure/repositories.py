from abc import ABC, abstractmethod
from collections.abc import Sequence

from domain.balance import BalanceDrift, BalanceTotals
from domain.transactions import Transaction, TransactionType
from domain.wallets import Wallet


class LedgerRepository(ABC):
    @abstractmethod
    def create_wallet(
        self,
        name: str,
        initial_balance: int,
        image_uri: str | None = None,
        icon: str | None = None,
    ) -> Wallet:
        """Create a wallet whose current balance equals its initial balance."""
        pass

    @abstractmethod
    def update_wallet(
        self,
        wallet_id: str,
        name: str,
        initial_balance: int,
        image_uri: str | None = None,
        icon: str | None = None,
    ) -> None:
        """Overwrite wallet fields and reconcile its current balance."""
        pass

    @abstractmethod
    def update_wallet_direct(
        self,
        wallet_id: str,
        name: str,
        new_current_balance: int,
        icon: str | None = None,
    ) -> None:
        """Set the current balance and back-solve the initial balance."""
        pass

    @abstractmethod
    def delete_wallet(self, wallet_id: str) -> None:
        """Delete a wallet together with its transactions."""
        pass

    @abstractmethod
    def get_all_wallets(self) -> list[Wallet]:
        pass

    @abstractmethod
    def get_wallet_by_id(self, wallet_id: str) -> Wallet | None:
        pass

    @abstractmethod
    def create_transaction(
        self,
        wallet_id: str,
        type: TransactionType | str,
        amount: int,
        reason: str | None = None,
        image_uri: str | None = None,
    ) -> Transaction:
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: str,
        wallet_id: str,
        type: TransactionType | str,
        amount: int,
        reason: str | None = None,
        image_uri: str | None = None,
    ) -> None:
        """Update a transaction, reconciling both old and new owning wallets."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> None:
        pass

    @abstractmethod
    def get_transaction_by_id(self, transaction_id: str) -> Transaction | None:
        pass

    @abstractmethod
    def get_transactions_by_wallet(
        self,
        wallet_id: str,
        filter_type: TransactionType | str | None = None,
    ) -> list[Transaction]:
        """Transactions of one wallet, newest first."""
        pass

    @abstractmethod
    def recalculate_balance(self, wallet_id: str) -> int | None:
        pass

    @abstractmethod
    def find_balance_drift(self) -> list[BalanceDrift]:
        """Wallets whose stored current balance disagrees with their ledger."""
        pass

    @abstractmethod
    def transaction_totals(
        self,
        wallet_id: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> BalanceTotals:
        pass

    @abstractmethod
    def count_transactions(self, wallet_id: str | None = None) -> int:
        pass

    @abstractmethod
    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        pass

    @abstractmethod
    def export_snapshot(self) -> tuple[list[Wallet], list[Transaction]]:
        """All wallets and transactions, oldest first."""
        pass

    @abstractmethod
    def replace_all_data(
        self, wallets: Sequence[Wallet], transactions: Sequence[Transaction]
    ) -> None:
        """Atomically replace every row and reconcile all wallets."""
        pass
