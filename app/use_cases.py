import logging

from domain.icons import normalize_icon
from domain.transactions import Transaction, TransactionType
from domain.validation import as_int, ensure_positive_amount, ensure_wallet_name
from domain.wallets import Wallet
from infrastructure.repositories import LedgerRepository
from utils.image_store import ImageStore

logger = logging.getLogger(__name__)


def _wallet_by_id(repository: LedgerRepository, wallet_id: str) -> Wallet:
    wallet = repository.get_wallet_by_id(wallet_id)
    if wallet is None:
        raise ValueError(f"Wallet not found: {wallet_id}")
    return wallet


def _transaction_by_id(repository: LedgerRepository, transaction_id: str) -> Transaction:
    transaction = repository.get_transaction_by_id(transaction_id)
    if transaction is None:
        raise ValueError(f"Transaction not found: {transaction_id}")
    return transaction


def _discard_replaced_image(
    images: ImageStore | None, old_uri: str | None, new_uri: str | None
) -> None:
    if images is not None and old_uri and old_uri != new_uri:
        images.delete_image(old_uri)


class CreateWallet:
    def __init__(self, repository: LedgerRepository):
        self._repository = repository

    def execute(
        self,
        *,
        name: str,
        initial_balance: int,
        image_uri: str | None = None,
        icon: str | None = None,
    ) -> Wallet:
        wallet = self._repository.create_wallet(
            ensure_wallet_name(name),
            as_int(initial_balance, "initial_balance"),
            image_uri,
            normalize_icon(icon),
        )
        logger.info(
            "Wallet created id=%s name=%s initial_balance=%s icon=%s",
            wallet.id,
            wallet.name,
            wallet.initial_balance,
            wallet.icon,
        )
        return wallet


class UpdateWallet:
    def __init__(self, repository: LedgerRepository, images: ImageStore | None = None):
        self._repository = repository
        self._images = images

    def execute(
        self,
        *,
        wallet_id: str,
        name: str,
        initial_balance: int,
        image_uri: str | None = None,
        icon: str | None = None,
    ) -> Wallet:
        """Edit a wallet's history anchor; the current balance follows."""
        previous = _wallet_by_id(self._repository, wallet_id)
        self._repository.update_wallet(
            wallet_id,
            ensure_wallet_name(name),
            as_int(initial_balance, "initial_balance"),
            image_uri,
            normalize_icon(icon),
        )
        _discard_replaced_image(self._images, previous.image_uri, image_uri)
        wallet = _wallet_by_id(self._repository, wallet_id)
        logger.info(
            "Wallet updated id=%s initial_balance=%s current_balance=%s",
            wallet.id,
            wallet.initial_balance,
            wallet.current_balance,
        )
        return wallet


class SetWalletBalance:
    def __init__(self, repository: LedgerRepository):
        self._repository = repository

    def execute(
        self,
        *,
        wallet_id: str,
        name: str,
        current_balance: int,
        icon: str | None = None,
    ) -> Wallet:
        """Overwrite the current balance without rewriting any transaction."""
        _wallet_by_id(self._repository, wallet_id)
        self._repository.update_wallet_direct(
            wallet_id,
            ensure_wallet_name(name),
            as_int(current_balance, "current_balance"),
            normalize_icon(icon),
        )
        return _wallet_by_id(self._repository, wallet_id)


class DeleteWallet:
    def __init__(self, repository: LedgerRepository, images: ImageStore | None = None):
        self._repository = repository
        self._images = images

    def execute(self, wallet_id: str) -> bool:
        wallet = self._repository.get_wallet_by_id(wallet_id)
        if wallet is None:
            return False
        image_uris = [wallet.image_uri] + [
            transaction.image_uri
            for transaction in self._repository.get_transactions_by_wallet(wallet_id)
        ]
        self._repository.delete_wallet(wallet_id)
        if self._images is not None:
            for uri in image_uris:
                if uri:
                    self._images.delete_image(uri)
        logger.info("Wallet deleted id=%s name=%s", wallet.id, wallet.name)
        return True


class GetWallets:
    def __init__(self, repository: LedgerRepository):
        self._repository = repository

    def execute(self) -> list[Wallet]:
        return self._repository.get_all_wallets()


class CreateTransaction:
    def __init__(self, repository: LedgerRepository):
        self._repository = repository

    def execute(
        self,
        *,
        wallet_id: str,
        type: str,
        amount: int,
        reason: str | None = None,
        image_uri: str | None = None,
    ) -> Transaction:
        _wallet_by_id(self._repository, wallet_id)
        transaction = self._repository.create_transaction(
            wallet_id,
            TransactionType.parse(type),
            ensure_positive_amount(amount),
            (reason or "").strip() or None,
            image_uri,
        )
        logger.info(
            "Transaction created id=%s wallet_id=%s type=%s amount=%s",
            transaction.id,
            transaction.wallet_id,
            transaction.type.value,
            transaction.amount,
        )
        return transaction


class UpdateTransaction:
    def __init__(self, repository: LedgerRepository, images: ImageStore | None = None):
        self._repository = repository
        self._images = images

    def execute(
        self,
        *,
        transaction_id: str,
        wallet_id: str,
        type: str,
        amount: int,
        reason: str | None = None,
        image_uri: str | None = None,
    ) -> Transaction:
        previous = _transaction_by_id(self._repository, transaction_id)
        _wallet_by_id(self._repository, wallet_id)
        self._repository.update_transaction(
            transaction_id,
            wallet_id,
            TransactionType.parse(type),
            ensure_positive_amount(amount),
            (reason or "").strip() or None,
            image_uri,
        )
        _discard_replaced_image(self._images, previous.image_uri, image_uri)
        logger.info(
            "Transaction updated id=%s wallet_id=%s previous_wallet_id=%s",
            transaction_id,
            wallet_id,
            previous.wallet_id,
        )
        return _transaction_by_id(self._repository, transaction_id)


class DeleteTransaction:
    def __init__(self, repository: LedgerRepository, images: ImageStore | None = None):
        self._repository = repository
        self._images = images

    def execute(self, transaction_id: str) -> bool:
        transaction = self._repository.get_transaction_by_id(transaction_id)
        if transaction is None:
            return False
        self._repository.delete_transaction(transaction_id)
        if self._images is not None and transaction.image_uri:
            self._images.delete_image(transaction.image_uri)
        logger.info(
            "Transaction deleted id=%s wallet_id=%s", transaction.id, transaction.wallet_id
        )
        return True


class GetTransactions:
    def __init__(self, repository: LedgerRepository):
        self._repository = repository

    def execute(self, wallet_id: str, filter_type: str | None = None) -> list[Transaction]:
        parsed = TransactionType.parse(filter_type) if filter_type else None
        return self._repository.get_transactions_by_wallet(wallet_id, parsed)
