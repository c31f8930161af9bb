from __future__ import annotations

import base64
import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from app.backup_service import BackupService
from app.statistics import StatisticsService
from domain.errors import BackupRestoreError, BackupValidationError, ImportCancelled
from infrastructure.sqlite_repository import SQLiteLedgerRepository
from utils.image_store import ImageStore


def _schema_path() -> str:
    return str(Path(__file__).resolve().parents[1] / "db" / "schema.sql")


class TickingClock:
    def __init__(self) -> None:
        self._now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


class StaticPicker:
    def __init__(self, path: str | None) -> None:
        self._path = path

    def pick(self) -> str | None:
        return self._path


class CancellingPicker:
    def pick(self) -> str | None:
        raise ImportCancelled()


class Ledger:
    """Repository, image store and backup service rooted in one directory."""

    def __init__(self, root: Path) -> None:
        root.mkdir(parents=True, exist_ok=True)
        self.repository = SQLiteLedgerRepository(
            str(root / "ledger.db"), _schema_path(), clock=TickingClock()
        )
        self.images = ImageStore(root / "images")
        self.images.ensure_directory()
        self.service = BackupService(
            self.repository,
            self.images,
            root / "exports",
            clock=lambda: datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc),
        )

    def close(self) -> None:
        self.repository.close()


@pytest.fixture
def source(tmp_path):
    ledger = Ledger(tmp_path / "source")
    yield ledger
    ledger.close()


@pytest.fixture
def target(tmp_path):
    ledger = Ledger(tmp_path / "target")
    yield ledger
    ledger.close()


def _populate(ledger: Ledger, tmp_path: Path) -> dict:
    picture = tmp_path / "picked.png"
    picture.write_bytes(b"\x89PNG fake image")
    image_uri = ledger.images.save_image_to_local(picture, "wallet")

    cash = ledger.repository.create_wallet("Cash", 100000, image_uri, "Coins")
    bank = ledger.repository.create_wallet("Bank", 0, None, "Landmark")
    ledger.repository.create_transaction(cash.id, "IN", 50000, "Salary")
    ledger.repository.create_transaction(cash.id, "OUT", 20000, "Food")
    ledger.repository.create_transaction(bank.id, "IN", 7000)
    return {"cash": cash.id, "bank": bank.id}


def test_export_writes_versioned_document(source, tmp_path) -> None:
    _populate(source, tmp_path)
    path = source.service.export_backup()

    assert Path(path).name == "liquidmoney_backup_2026-02-01T09-30-00.json"
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    assert data["version"] == 1
    assert data["app"] == "LiquidMoney"
    assert data["exported_at"] == "2026-02-01T09:30:00.000Z"
    assert [wallet["name"] for wallet in data["wallets"]] == ["Cash", "Bank"]
    assert base64.b64decode(data["wallets"][0]["image_base64"]) == b"\x89PNG fake image"
    assert data["wallets"][1]["image_base64"] is None
    assert len(data["transactions"]) == 3


def test_round_trip_restores_rows_balances_and_images(source, target, tmp_path) -> None:
    ids = _populate(source, tmp_path)
    path = source.service.export_backup()

    target.repository.create_wallet("Stale", 1)
    assert target.service.import_backup(StaticPicker(path)) is True

    assert [w.name for w in target.repository.get_all_wallets()] == ["Bank", "Cash"]
    cash = target.repository.get_wallet_by_id(ids["cash"])
    assert cash.current_balance == 130000
    assert cash.icon == "Coins"
    assert cash.image_uri == str(target.images.image_dir / f"wallet_{ids['cash']}.jpg")
    assert Path(cash.image_uri).read_bytes() == b"\x89PNG fake image"
    assert target.repository.get_wallet_by_id(ids["bank"]).current_balance == 7000
    assert target.repository.count_transactions() == 3
    assert target.repository.find_balance_drift() == []


def test_import_distrusts_stored_current_balance(source, target, tmp_path) -> None:
    ids = _populate(source, tmp_path)
    path = Path(source.service.export_backup())
    data = json.loads(path.read_text(encoding="utf-8"))
    for wallet in data["wallets"]:
        wallet["current_balance"] = 1
    path.write_text(json.dumps(data), encoding="utf-8")

    target.service.import_backup_from_file(str(path))
    assert target.repository.get_wallet_by_id(ids["cash"]).current_balance == 130000


def test_invalid_backup_leaves_data_untouched(target, tmp_path) -> None:
    keep = target.repository.create_wallet("Keep", 10)
    stale_image = target.images.image_dir / "keep.jpg"
    stale_image.write_bytes(b"keep")

    bad = tmp_path / "bad.json"
    bad.write_text(
        json.dumps({"version": 1, "wallets": [], "transactions": [{"id": "t1"}]}),
        encoding="utf-8",
    )
    with pytest.raises(BackupValidationError):
        target.service.import_backup(StaticPicker(str(bad)))

    assert [w.id for w in target.repository.get_all_wallets()] == [keep.id]
    assert stale_image.exists()


def test_newer_version_leaves_data_untouched(target, tmp_path) -> None:
    target.repository.create_wallet("Keep", 10)
    newer = tmp_path / "newer.json"
    newer.write_text(json.dumps({"version": 99, "wallets": [], "transactions": []}))
    with pytest.raises(BackupValidationError):
        target.service.import_backup_from_file(str(newer))
    assert len(target.repository.get_all_wallets()) == 1


@pytest.mark.parametrize("picker", [StaticPicker(None), StaticPicker(""), CancellingPicker()])
def test_cancelled_picker_returns_false(target, picker) -> None:
    target.repository.create_wallet("Keep", 10)
    assert target.service.import_backup(picker) is False
    assert len(target.repository.get_all_wallets()) == 1


def test_missing_image_is_exported_as_null(source, tmp_path) -> None:
    ids = _populate(source, tmp_path)
    Path(source.repository.get_wallet_by_id(ids["cash"]).image_uri).unlink()

    data = json.loads(Path(source.service.export_backup()).read_text(encoding="utf-8"))
    cash = next(wallet for wallet in data["wallets"] if wallet["id"] == ids["cash"])
    assert cash["image_base64"] is None
    assert cash["image_uri"] is not None


def test_invalid_base64_degrades_to_missing_image(source, target, tmp_path) -> None:
    ids = _populate(source, tmp_path)
    path = Path(source.service.export_backup())
    data = json.loads(path.read_text(encoding="utf-8"))
    data["wallets"][0]["image_base64"] = "%%% not base64 %%%"
    path.write_text(json.dumps(data), encoding="utf-8")

    assert target.service.import_backup_from_file(str(path)) is True
    assert target.repository.get_wallet_by_id(ids["cash"]).image_uri is None
    assert target.repository.get_wallet_by_id(ids["cash"]).current_balance == 130000


def test_import_replaces_image_directory(source, target, tmp_path) -> None:
    _populate(source, tmp_path)
    path = source.service.export_backup()
    orphan = target.images.image_dir / "orphan.jpg"
    orphan.write_bytes(b"old")

    target.service.import_backup_from_file(path)

    assert not orphan.exists()
    assert len(target.images.list_images()) == 1
    leftovers = [p.name for p in target.images.image_dir.parent.iterdir() if p.name.startswith(".")]
    assert leftovers == []


def test_restore_failure_is_wrapped_and_keeps_images(source, target, tmp_path, monkeypatch) -> None:
    _populate(source, tmp_path)
    path = source.service.export_backup()
    target.repository.create_wallet("Keep", 10)
    kept = target.images.image_dir / "kept.jpg"
    kept.write_bytes(b"kept")

    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(target.repository, "replace_all_data", fail)
    with pytest.raises(BackupRestoreError):
        target.service.import_backup_from_file(path)

    assert kept.exists()
    assert len(target.repository.get_all_wallets()) == 1


def test_import_normalizes_timestamps_to_utc(target, tmp_path) -> None:
    backup = tmp_path / "zoned.json"
    backup.write_text(
        json.dumps(
            {
                "version": 1,
                "app": "LiquidMoney",
                "wallets": [
                    {
                        "id": "w1",
                        "name": "Cash",
                        "initial_balance": 0,
                        "created_at": "2026-02-01T00:00:00",
                    }
                ],
                "transactions": [
                    {
                        "id": "naive",
                        "wallet_id": "w1",
                        "type": "IN",
                        "amount": 100,
                        "created_at": "2026-03-01T00:00:00",
                    },
                    {
                        "id": "offset",
                        "wallet_id": "w1",
                        "type": "IN",
                        "amount": 7,
                        "created_at": "2026-03-01T02:00:00+05:00",
                    },
                ],
            }
        ),
        encoding="utf-8",
    )

    target.service.import_backup_from_file(str(backup))

    offset = target.repository.get_transaction_by_id("offset")
    assert offset.created_at == "2026-02-28T21:00:00.000Z"
    assert target.repository.get_wallet_by_id("w1").created_at == "2026-02-01T00:00:00.000Z"
    assert [t.id for t in target.repository.get_transactions_by_wallet("w1")] == [
        "naive",
        "offset",
    ]

    stats = StatisticsService(target.repository, today=lambda: date(2026, 3, 15), months=2)
    february, march = stats.monthly_stats()
    assert (february.month, february.total_in) == ("2026-02", 7)
    assert (march.month, march.total_in) == ("2026-03", 100)
