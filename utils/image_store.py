from __future__ import annotations

import base64
import binascii
import logging
import os
import secrets
import shutil
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSION = "jpg"


class ImageStaging:
    """Collects decoded images for a directory swap.

    Files are written into ``staging_dir`` but the returned paths point into the
    final image directory, where they will live once the swap completes.
    """

    def __init__(self, staging_dir: Path, target_dir: Path) -> None:
        self._staging_dir = staging_dir
        self._target_dir = target_dir
        self.written = 0
        self.failed = 0

    def write_base64(self, data: str, file_name: str) -> str | None:
        try:
            payload = base64.b64decode("".join(str(data).split()), validate=True)
            (self._staging_dir / file_name).write_bytes(payload)
        except (binascii.Error, ValueError, OSError):
            self.failed += 1
            logger.warning("Failed to restore image %s", file_name, exc_info=True)
            return None
        self.written += 1
        return str(self._target_dir / file_name)


class ImageStore:
    """App-private directory holding wallet and transaction images.

    Directory-level mutations hold one lock; a restore never clears the live
    directory in place but swaps a fully written staging directory over it.
    """

    def __init__(self, image_dir: str | Path) -> None:
        self._image_dir = Path(image_dir)
        self._lock = threading.RLock()

    @property
    def image_dir(self) -> Path:
        return self._image_dir

    def ensure_directory(self) -> Path:
        self._image_dir.mkdir(parents=True, exist_ok=True)
        return self._image_dir

    def save_image_to_local(self, temp_path: str | Path, prefix: str) -> str:
        """Copy a picked image into the image directory under a unique name."""
        source = Path(temp_path)
        extension = source.suffix.lstrip(".").lower() or DEFAULT_IMAGE_EXTENSION
        unique = f"{int(time.time() * 1000)}_{secrets.token_hex(3)}"
        with self._lock:
            self.ensure_directory()
            destination = self._image_dir / f"{prefix}_{unique}.{extension}"
            shutil.copyfile(source, destination)
        return str(destination)

    def delete_image(self, path: str | None) -> bool:
        if not path:
            return False
        with self._lock:
            try:
                os.remove(path)
            except FileNotFoundError:
                return False
            except OSError:
                logger.warning("Failed to delete image %s", path, exc_info=True)
                return False
        return True

    def read_base64(self, path: str | None) -> str | None:
        if not path:
            return None
        with self._lock:
            try:
                payload = Path(path).read_bytes()
            except FileNotFoundError:
                logger.warning("Image not found, exporting without it: %s", path)
                return None
            except OSError:
                logger.warning("Failed to read image %s", path, exc_info=True)
                return None
        return base64.b64encode(payload).decode("ascii")

    def list_images(self) -> list[str]:
        if not self._image_dir.exists():
            return []
        return sorted(str(path) for path in self._image_dir.iterdir() if path.is_file())

    @contextmanager
    def staging(self) -> Iterator[ImageStaging]:
        """Stage a complete replacement of the image directory.

        On normal exit the staged directory replaces the live one and the previous
        images are removed. On error the staged files are discarded and the live
        directory is left untouched.
        """
        with self._lock:
            parent = self._image_dir.parent
            parent.mkdir(parents=True, exist_ok=True)
            token = uuid.uuid4().hex
            staging_dir = parent / f".{self._image_dir.name}.staging-{token}"
            staging_dir.mkdir()
            retired_dir = parent / f".{self._image_dir.name}.old-{token}"
            try:
                yield ImageStaging(staging_dir, self._image_dir)
                self._swap_in(staging_dir, retired_dir)
            except BaseException:
                shutil.rmtree(staging_dir, ignore_errors=True)
                if retired_dir.exists() and not self._image_dir.exists():
                    os.replace(retired_dir, self._image_dir)
                raise

    def _swap_in(self, staging_dir: Path, retired_dir: Path) -> None:
        if self._image_dir.exists():
            os.replace(self._image_dir, retired_dir)
        os.replace(staging_dir, self._image_dir)
        shutil.rmtree(retired_dir, ignore_errors=True)
        logger.info("Image directory replaced: %s", self._image_dir)
