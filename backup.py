from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path


def create_backup(sqlite_path: str) -> str | None:
    """Snapshot the SQLite database next to it, before a destructive import."""
    source_path = Path(sqlite_path)
    if not source_path.exists():
        return None
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_dir = source_path.parent / "backups"
    backup_dir.mkdir(exist_ok=True)
    backup_path = backup_dir / f"{source_path.stem}_backup_{stamp}{source_path.suffix}"

    source = sqlite3.connect(str(source_path))
    target = sqlite3.connect(str(backup_path))
    try:
        source.backup(target)
    finally:
        target.close()
        source.close()
    print(f"[backup] SQLite snapshot created: {backup_path}")
    return str(backup_path)
