"""Backup document wire format.

A backup is one JSON object::

    {
      "version": 1,
      "app": "LiquidMoney",
      "exported_at": "2026-01-31T10:00:00.000Z",
      "wallets": [{...wallet fields..., "image_base64": "..." | null}],
      "transactions": [{...transaction fields..., "image_base64": "..." | null}]
    }

The wire records wrap the live model instead of extending it, so the document
schema can evolve independently of the database rows.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from domain.errors import BackupValidationError, BackupVersionError
from domain.icons import normalize_icon
from domain.transactions import Transaction, TransactionType
from domain.validation import as_int, format_timestamp, normalize_timestamp
from domain.wallets import Wallet

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1
APP_NAME = "LiquidMoney"
BACKUP_FILE_PREFIX = "liquidmoney_backup_"


@dataclass(frozen=True)
class BackupWalletRecord:
    wallet: Wallet
    image_base64: str | None = None

    def to_payload(self) -> dict:
        wallet = self.wallet
        return {
            "id": wallet.id,
            "name": wallet.name,
            "initial_balance": wallet.initial_balance,
            "current_balance": wallet.current_balance,
            "image_uri": wallet.image_uri,
            "icon": wallet.icon,
            "created_at": wallet.created_at,
            "image_base64": self.image_base64,
        }


@dataclass(frozen=True)
class BackupTransactionRecord:
    transaction: Transaction
    image_base64: str | None = None

    def to_payload(self) -> dict:
        transaction = self.transaction
        return {
            "id": transaction.id,
            "wallet_id": transaction.wallet_id,
            "type": transaction.type.value,
            "amount": transaction.amount,
            "reason": transaction.reason,
            "image_uri": transaction.image_uri,
            "created_at": transaction.created_at,
            "image_base64": self.image_base64,
        }


@dataclass(frozen=True)
class BackupDocument:
    wallets: list[BackupWalletRecord] = field(default_factory=list)
    transactions: list[BackupTransactionRecord] = field(default_factory=list)
    version: int = BACKUP_VERSION
    app: str = APP_NAME
    exported_at: str = ""

    def to_payload(self) -> dict:
        return {
            "version": self.version,
            "app": self.app,
            "exported_at": self.exported_at,
            "wallets": [record.to_payload() for record in self.wallets],
            "transactions": [record.to_payload() for record in self.transactions],
        }


def build_document(
    wallets: Sequence[BackupWalletRecord],
    transactions: Sequence[BackupTransactionRecord],
    exported_at: datetime,
) -> BackupDocument:
    return BackupDocument(
        wallets=list(wallets),
        transactions=list(transactions),
        version=BACKUP_VERSION,
        app=APP_NAME,
        exported_at=format_timestamp(exported_at),
    )


def backup_file_name(exported_at: datetime) -> str:
    stamp = format_timestamp(exported_at)[:19].replace(":", "-")
    return f"{BACKUP_FILE_PREFIX}{stamp}.json"


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def _required_text(item: dict, key: str, row_label: str) -> str:
    value = item.get(key)
    if value is None or str(value).strip() == "":
        raise BackupValidationError(f"{row_label}: missing required field '{key}'")
    return str(value)


def _timestamp(item: dict, row_label: str) -> str:
    """Canonical UTC form; stored timestamps are compared as strings."""
    value = _required_text(item, "created_at", row_label)
    try:
        return normalize_timestamp(value)
    except ValueError as exc:
        raise BackupValidationError(f"{row_label}: {exc}") from exc


def _image_payload(item: dict, row_label: str) -> str | None:
    value = item.get("image_base64")
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise BackupValidationError(f"{row_label}: image_base64 must be a string or null")
    return value


def parse_wallet_record(item: Any, row_label: str) -> BackupWalletRecord:
    if not isinstance(item, dict):
        raise BackupValidationError(f"{row_label}: invalid item type")
    try:
        initial_balance = as_int(item.get("initial_balance", 0), "initial_balance")
        current_balance = as_int(
            item.get("current_balance", initial_balance), "current_balance"
        )
        wallet = Wallet(
            id=_required_text(item, "id", row_label),
            name=_required_text(item, "name", row_label),
            initial_balance=initial_balance,
            current_balance=current_balance,
            image_uri=_optional_text(item.get("image_uri")),
            icon=normalize_icon(item.get("icon")),
            created_at=_timestamp(item, row_label),
        )
    except BackupValidationError:
        raise
    except ValueError as exc:
        raise BackupValidationError(f"{row_label}: invalid wallet ({exc})") from exc
    return BackupWalletRecord(wallet=wallet, image_base64=_image_payload(item, row_label))


def parse_transaction_record(item: Any, row_label: str) -> BackupTransactionRecord:
    if not isinstance(item, dict):
        raise BackupValidationError(f"{row_label}: invalid item type")
    try:
        transaction = Transaction(
            id=_required_text(item, "id", row_label),
            wallet_id=_required_text(item, "wallet_id", row_label),
            type=TransactionType.parse(_required_text(item, "type", row_label)),
            amount=as_int(item.get("amount", 0), "amount"),
            reason=_optional_text(item.get("reason")),
            image_uri=_optional_text(item.get("image_uri")),
            created_at=_timestamp(item, row_label),
        )
    except BackupValidationError:
        raise
    except ValueError as exc:
        raise BackupValidationError(f"{row_label}: invalid transaction ({exc})") from exc
    return BackupTransactionRecord(
        transaction=transaction, image_base64=_image_payload(item, row_label)
    )


def _parse_version(data: dict) -> int:
    raw = data.get("version", BACKUP_VERSION)
    try:
        version = as_int(raw, "version")
    except ValueError as exc:
        raise BackupValidationError(f"Invalid backup version: {raw!r}") from exc
    if version > BACKUP_VERSION:
        raise BackupVersionError(
            f"Backup version {version} is newer than supported version {BACKUP_VERSION}"
        )
    return version


def parse_backup_payload(data: Any) -> BackupDocument:
    """Validate a decoded backup document without touching any state."""
    if not isinstance(data, dict):
        raise BackupValidationError("Invalid backup structure: root must be an object")

    raw_wallets = data.get("wallets")
    raw_transactions = data.get("transactions")
    if not isinstance(raw_wallets, list):
        raise BackupValidationError("Invalid backup structure: 'wallets' must be an array")
    if not isinstance(raw_transactions, list):
        raise BackupValidationError(
            "Invalid backup structure: 'transactions' must be an array"
        )

    version = _parse_version(data)

    wallets: list[BackupWalletRecord] = []
    wallet_ids: set[str] = set()
    for idx, item in enumerate(raw_wallets, start=1):
        record = parse_wallet_record(item, f"wallets[{idx}]")
        if record.wallet.id in wallet_ids:
            raise BackupValidationError(
                f"wallets[{idx}]: duplicate wallet id {record.wallet.id}"
            )
        wallet_ids.add(record.wallet.id)
        wallets.append(record)

    transactions: list[BackupTransactionRecord] = []
    transaction_ids: set[str] = set()
    for idx, item in enumerate(raw_transactions, start=1):
        record = parse_transaction_record(item, f"transactions[{idx}]")
        if record.transaction.wallet_id not in wallet_ids:
            raise BackupValidationError(
                f"transactions[{idx}]: wallet not found ({record.transaction.wallet_id})"
            )
        if record.transaction.id in transaction_ids:
            raise BackupValidationError(
                f"transactions[{idx}]: duplicate transaction id {record.transaction.id}"
            )
        transaction_ids.add(record.transaction.id)
        transactions.append(record)

    return BackupDocument(
        wallets=wallets,
        transactions=transactions,
        version=version,
        app=str(data.get("app") or APP_NAME),
        exported_at=str(data.get("exported_at") or ""),
    )


def write_backup_file(filepath: str, document: BackupDocument) -> None:
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as fp:
        json.dump(document.to_payload(), fp, ensure_ascii=False, indent=2)


def read_backup_file(filepath: str) -> BackupDocument:
    try:
        with open(filepath, encoding="utf-8") as fp:
            data = json.load(fp)
    except json.JSONDecodeError as exc:
        raise BackupValidationError(f"Backup file is not valid JSON: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise BackupValidationError(f"Cannot read backup file {filepath}: {exc}") from exc

    document = parse_backup_payload(data)
    if document.app != APP_NAME:
        logger.warning("Backup produced by unexpected app %r: %s", document.app, filepath)
    return document


def with_restored_images(
    document: BackupDocument,
    wallet_images: dict[str, str | None],
    transaction_images: dict[str, str | None],
) -> tuple[list[Wallet], list[Transaction]]:
    """Live rows with ``image_uri`` pointing at restored files and payloads dropped."""
    wallets = [
        replace(record.wallet, image_uri=wallet_images.get(record.wallet.id))
        for record in document.wallets
    ]
    transactions = [
        replace(record.transaction, image_uri=transaction_images.get(record.transaction.id))
        for record in document.transactions
    ]
    return wallets, transactions
