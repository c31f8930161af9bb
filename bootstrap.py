from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from app.backup_service import BackupService
from app.statistics import StatisticsService
from config import EXPORT_DIR, IMAGE_DIR, MONTHLY_WINDOW, SCHEMA_PATH, SQLITE_PATH
from infrastructure.sqlite_repository import SQLiteLedgerRepository
from utils.image_store import ImageStore


@dataclass
class LedgerContext:
    """Wired ledger components sharing one database connection."""

    repository: SQLiteLedgerRepository
    images: ImageStore
    statistics: StatisticsService
    backups: BackupService

    def close(self) -> None:
        self.repository.close()

    def __enter__(self) -> "LedgerContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _heal_balance_drift(repository: SQLiteLedgerRepository) -> None:
    drifts = repository.find_balance_drift()
    if not drifts:
        print("[bootstrap] Balance check passed")
        return
    for drift in drifts:
        print(
            f"[bootstrap] Wallet {drift.wallet_id} balance drift "
            f"stored={drift.stored_balance} expected={drift.expected_balance}"
        )
    repository.recalculate_all()
    print(f"[bootstrap] Reconciled {len(drifts)} drifted wallet(s)")


def bootstrap_ledger(
    sqlite_path: str = SQLITE_PATH,
    image_dir: str = IMAGE_DIR,
    export_dir: str = EXPORT_DIR,
    schema_path: str | None = SCHEMA_PATH,
    *,
    heal: bool = True,
) -> LedgerContext:
    """Open the ledger and wire its services.

    With ``heal`` set, wallets whose stored balance disagrees with their ledger are
    reconciled before anything else runs.
    """
    if sqlite_path != ":memory:":
        Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    print(f"[bootstrap] Opening SQLite ledger: {sqlite_path}")
    repository = SQLiteLedgerRepository(sqlite_path, schema_path=schema_path)
    try:
        if heal:
            _heal_balance_drift(repository)
        images = ImageStore(image_dir)
        images.ensure_directory()
        context = LedgerContext(
            repository=repository,
            images=images,
            statistics=StatisticsService(repository, months=MONTHLY_WINDOW),
            backups=BackupService(repository, images, export_dir),
        )
    except Exception:
        repository.close()
        raise
    return context
