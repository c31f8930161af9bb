from unittest.mock import Mock

import pytest

from app.use_cases import (
    CreateTransaction,
    CreateWallet,
    DeleteTransaction,
    DeleteWallet,
    GetTransactions,
    GetWallets,
    SetWalletBalance,
    UpdateTransaction,
    UpdateWallet,
)
from domain.transactions import Transaction, TransactionType
from domain.wallets import Wallet
from infrastructure.repositories import LedgerRepository
from utils.image_store import ImageStore

CREATED = "2026-01-01T00:00:00.000Z"


def _wallet(**overrides) -> Wallet:
    values = dict(
        id="w1",
        name="Cash",
        initial_balance=100,
        current_balance=100,
        created_at=CREATED,
    )
    values.update(overrides)
    return Wallet(**values)


def _transaction(**overrides) -> Transaction:
    values = dict(id="t1", wallet_id="w1", type="IN", amount=50, created_at=CREATED)
    values.update(overrides)
    return Transaction(**values)


class TestCreateWallet:
    def test_execute_normalizes_input(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.create_wallet.return_value = _wallet()

        wallet = CreateWallet(mock_repo).execute(
            name="  Cash ", initial_balance="100", icon="Unknown"
        )

        mock_repo.create_wallet.assert_called_once_with("Cash", 100, None, "Wallet")
        assert wallet.id == "w1"

    def test_execute_rejects_blank_name(self):
        mock_repo = Mock(spec=LedgerRepository)
        with pytest.raises(ValueError, match="Wallet name is required"):
            CreateWallet(mock_repo).execute(name=" ", initial_balance=0)
        mock_repo.create_wallet.assert_not_called()


class TestUpdateWallet:
    def test_replaced_image_is_discarded(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_images = Mock(spec=ImageStore)
        mock_repo.get_wallet_by_id.side_effect = [
            _wallet(image_uri="/img/old.jpg"),
            _wallet(image_uri="/img/new.jpg", initial_balance=200, current_balance=200),
        ]

        wallet = UpdateWallet(mock_repo, mock_images).execute(
            wallet_id="w1", name="Cash", initial_balance=200, image_uri="/img/new.jpg"
        )

        mock_repo.update_wallet.assert_called_once_with("w1", "Cash", 200, "/img/new.jpg", "Wallet")
        mock_images.delete_image.assert_called_once_with("/img/old.jpg")
        assert wallet.current_balance == 200

    def test_missing_wallet_raises(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_wallet_by_id.return_value = None
        with pytest.raises(ValueError, match="Wallet not found"):
            UpdateWallet(mock_repo).execute(wallet_id="nope", name="x", initial_balance=1)
        mock_repo.update_wallet.assert_not_called()


class TestSetWalletBalance:
    def test_execute_uses_direct_update(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_wallet_by_id.return_value = _wallet()

        SetWalletBalance(mock_repo).execute(
            wallet_id="w1", name="Cash", current_balance=500, icon="Vault"
        )

        mock_repo.update_wallet_direct.assert_called_once_with("w1", "Cash", 500, "Vault")


class TestDeleteWallet:
    def test_deletes_row_and_all_images(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_images = Mock(spec=ImageStore)
        mock_repo.get_wallet_by_id.return_value = _wallet(image_uri="/img/w.jpg")
        mock_repo.get_transactions_by_wallet.return_value = [
            _transaction(image_uri="/img/t1.jpg"),
            _transaction(id="t2"),
        ]

        assert DeleteWallet(mock_repo, mock_images).execute("w1") is True

        mock_repo.delete_wallet.assert_called_once_with("w1")
        assert [call.args[0] for call in mock_images.delete_image.call_args_list] == [
            "/img/w.jpg",
            "/img/t1.jpg",
        ]

    def test_missing_wallet_returns_false(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_wallet_by_id.return_value = None
        assert DeleteWallet(mock_repo).execute("nope") is False
        mock_repo.delete_wallet.assert_not_called()


class TestGetWallets:
    def test_execute_returns_repository_wallets(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_all_wallets.return_value = [_wallet()]
        assert GetWallets(mock_repo).execute() == [_wallet()]


class TestCreateTransaction:
    def test_execute_validates_and_strips_reason(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_wallet_by_id.return_value = _wallet()
        mock_repo.create_transaction.return_value = _transaction()

        CreateTransaction(mock_repo).execute(wallet_id="w1", type="in", amount=50, reason="  ")

        mock_repo.create_transaction.assert_called_once_with(
            "w1", TransactionType.IN, 50, None, None
        )

    @pytest.mark.parametrize("amount", [0, -10, 2.5])
    def test_execute_rejects_bad_amount(self, amount):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_wallet_by_id.return_value = _wallet()
        with pytest.raises(ValueError):
            CreateTransaction(mock_repo).execute(wallet_id="w1", type="OUT", amount=amount)
        mock_repo.create_transaction.assert_not_called()

    def test_execute_requires_existing_wallet(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_wallet_by_id.return_value = None
        with pytest.raises(ValueError, match="Wallet not found"):
            CreateTransaction(mock_repo).execute(wallet_id="nope", type="IN", amount=1)


class TestUpdateTransaction:
    def test_execute_moves_transaction(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_transaction_by_id.side_effect = [
            _transaction(),
            _transaction(wallet_id="w2", amount=70),
        ]
        mock_repo.get_wallet_by_id.return_value = _wallet(id="w2")

        updated = UpdateTransaction(mock_repo).execute(
            transaction_id="t1", wallet_id="w2", type="IN", amount=70, reason="Moved"
        )

        mock_repo.update_transaction.assert_called_once_with(
            "t1", "w2", TransactionType.IN, 70, "Moved", None
        )
        assert updated.wallet_id == "w2"

    def test_missing_transaction_raises(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_transaction_by_id.return_value = None
        with pytest.raises(ValueError, match="Transaction not found"):
            UpdateTransaction(mock_repo).execute(
                transaction_id="nope", wallet_id="w1", type="IN", amount=1
            )


class TestDeleteTransaction:
    def test_deletes_row_and_image(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_images = Mock(spec=ImageStore)
        mock_repo.get_transaction_by_id.return_value = _transaction(image_uri="/img/t1.jpg")

        assert DeleteTransaction(mock_repo, mock_images).execute("t1") is True
        mock_repo.delete_transaction.assert_called_once_with("t1")
        mock_images.delete_image.assert_called_once_with("/img/t1.jpg")

    def test_missing_transaction_returns_false(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_transaction_by_id.return_value = None
        assert DeleteTransaction(mock_repo).execute("nope") is False


class TestGetTransactions:
    def test_execute_parses_filter(self):
        mock_repo = Mock(spec=LedgerRepository)
        mock_repo.get_transactions_by_wallet.return_value = []
        GetTransactions(mock_repo).execute("w1", "out")
        mock_repo.get_transactions_by_wallet.assert_called_once_with("w1", TransactionType.OUT)
