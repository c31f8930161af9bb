from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Protocol

from domain.errors import BackupRestoreError, ImportCancelled
from domain.validation import utc_now
from infrastructure.repositories import LedgerRepository
from utils.backup_utils import (
    BackupTransactionRecord,
    BackupWalletRecord,
    backup_file_name,
    build_document,
    read_backup_file,
    with_restored_images,
    write_backup_file,
)
from utils.image_store import ImageStore

logger = logging.getLogger(__name__)


class DocumentPicker(Protocol):
    def pick(self) -> str | None:
        """Return the chosen file path, or None if the user cancelled.

        Implementations may raise ImportCancelled instead of returning None.
        """
        ...


def wallet_image_name(wallet_id: str) -> str:
    return f"wallet_{wallet_id}.jpg"


def transaction_image_name(transaction_id: str) -> str:
    return f"txn_{transaction_id}.jpg"


class BackupService:
    def __init__(
        self,
        repository: LedgerRepository,
        images: ImageStore,
        export_dir: str | Path,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._images = images
        self._export_dir = Path(export_dir)
        self._clock = clock

    def export_backup(self, directory: str | Path | None = None) -> str:
        """Write every wallet, transaction and image into one JSON file.

        Images that cannot be read are exported as null.
        """
        wallets, transactions = self._repository.export_snapshot()
        wallet_records = [
            BackupWalletRecord(wallet=wallet, image_base64=self._images.read_base64(wallet.image_uri))
            for wallet in wallets
        ]
        transaction_records = [
            BackupTransactionRecord(
                transaction=transaction,
                image_base64=self._images.read_base64(transaction.image_uri),
            )
            for transaction in transactions
        ]

        exported_at = self._clock()
        document = build_document(wallet_records, transaction_records, exported_at)
        target_dir = Path(directory) if directory is not None else self._export_dir
        filepath = str(target_dir / backup_file_name(exported_at))
        write_backup_file(filepath, document)

        missing = sum(
            1 for wallet, record in zip(wallets, wallet_records)
            if wallet.image_uri and record.image_base64 is None
        ) + sum(
            1 for transaction, record in zip(transactions, transaction_records)
            if transaction.image_uri and record.image_base64 is None
        )
        logger.info(
            "Backup exported wallets=%s transactions=%s missing_images=%s file=%s",
            len(wallet_records),
            len(transaction_records),
            missing,
            filepath,
        )
        return filepath

    def import_backup(self, picker: DocumentPicker) -> bool:
        """Let the user pick a backup and restore it, replacing all data.

        Returns False when the user cancels the picker. Raises
        BackupValidationError if the document is rejected (nothing changed) and
        BackupRestoreError if the destructive phase failed.
        """
        try:
            filepath = picker.pick()
        except ImportCancelled:
            filepath = None
        if not filepath:
            logger.info("Backup import cancelled by user")
            return False
        return self.import_backup_from_file(filepath)

    def import_backup_from_file(self, filepath: str) -> bool:
        document = read_backup_file(filepath)

        try:
            with self._images.staging() as staging:
                wallet_images: dict[str, str | None] = {}
                for record in document.wallets:
                    if record.image_base64:
                        wallet_images[record.wallet.id] = staging.write_base64(
                            record.image_base64, wallet_image_name(record.wallet.id)
                        )
                transaction_images: dict[str, str | None] = {}
                for record in document.transactions:
                    if record.image_base64:
                        transaction_images[record.transaction.id] = staging.write_base64(
                            record.image_base64,
                            transaction_image_name(record.transaction.id),
                        )

                wallets, transactions = with_restored_images(
                    document, wallet_images, transaction_images
                )
                self._repository.replace_all_data(wallets, transactions)
        except (sqlite3.Error, OSError) as exc:
            logger.exception("Backup import failed during restore: %s", filepath)
            raise BackupRestoreError(f"Backup restore failed: {exc}") from exc

        logger.info(
            "Backup imported wallets=%s transactions=%s images=%s failed_images=%s file=%s",
            len(wallets),
            len(transactions),
            staging.written,
            staging.failed,
            filepath,
        )
        return True
