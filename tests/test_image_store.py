import base64
import os
from pathlib import Path

import pytest

from utils.image_store import ImageStore


def test_save_image_to_local_copies_with_unique_name(tmp_path) -> None:
    store = ImageStore(tmp_path / "images")
    source = tmp_path / "photo.PNG"
    source.write_bytes(b"pixels")

    first = store.save_image_to_local(source, "wallet")
    second = store.save_image_to_local(source, "wallet")

    assert first != second
    assert Path(first).parent == store.image_dir
    assert Path(first).name.startswith("wallet_")
    assert Path(first).suffix == ".png"
    assert Path(first).read_bytes() == b"pixels"
    assert source.exists()


def test_delete_image(tmp_path) -> None:
    store = ImageStore(tmp_path / "images")
    source = tmp_path / "photo.jpg"
    source.write_bytes(b"pixels")
    saved = store.save_image_to_local(source, "txn")

    assert store.delete_image(saved) is True
    assert store.delete_image(saved) is False
    assert store.delete_image(None) is False


def test_read_base64_degrades_to_none(tmp_path) -> None:
    store = ImageStore(tmp_path / "images")
    image = tmp_path / "a.jpg"
    image.write_bytes(b"abc")

    assert store.read_base64(str(image)) == base64.b64encode(b"abc").decode("ascii")
    assert store.read_base64(str(tmp_path / "missing.jpg")) is None
    assert store.read_base64(None) is None


def test_staging_swaps_directory_on_success(tmp_path) -> None:
    store = ImageStore(tmp_path / "images")
    store.ensure_directory()
    (store.image_dir / "old.jpg").write_bytes(b"old")

    with store.staging() as staging:
        restored = staging.write_base64(base64.b64encode(b"new").decode(), "wallet_w1.jpg")
        broken = staging.write_base64("***", "wallet_w2.jpg")
        assert not Path(restored).exists()

    assert restored == str(store.image_dir / "wallet_w1.jpg")
    assert Path(restored).read_bytes() == b"new"
    assert broken is None
    assert staging.written == 1
    assert staging.failed == 1
    assert store.list_images() == [restored]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["images"]


def test_staging_discards_on_error(tmp_path) -> None:
    store = ImageStore(tmp_path / "images")
    store.ensure_directory()
    (store.image_dir / "old.jpg").write_bytes(b"old")

    with pytest.raises(RuntimeError):
        with store.staging() as staging:
            staging.write_base64(base64.b64encode(b"new").decode(), "wallet_w1.jpg")
            raise RuntimeError("abort")

    assert [Path(p).name for p in store.list_images()] == ["old.jpg"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["images"]


def test_staging_creates_missing_directory(tmp_path) -> None:
    store = ImageStore(tmp_path / "nested" / "images")
    with store.staging():
        pass
    assert store.image_dir.is_dir()
    assert store.list_images() == []


def test_failed_swap_restores_live_directory(tmp_path, monkeypatch) -> None:
    store = ImageStore(tmp_path / "images")
    store.ensure_directory()
    (store.image_dir / "old.jpg").write_bytes(b"old")
    real_replace = os.replace

    def replace(src, dst):
        if ".staging-" in str(src):
            raise OSError("device busy")
        real_replace(src, dst)

    monkeypatch.setattr("utils.image_store.os.replace", replace)
    with pytest.raises(OSError, match="device busy"):
        with store.staging() as staging:
            staging.write_base64(base64.b64encode(b"new").decode(), "wallet_w1.jpg")

    assert [Path(p).name for p in store.list_images()] == ["old.jpg"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["images"]
