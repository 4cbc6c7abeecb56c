import os
from datetime import date, datetime
from pathlib import Path

import pytest

from backup_cleaner.core.models import BackupFile, BackupSet


TODAY = date(2024, 6, 15)


def make_file(tmp_path: Path, name: str, size: int = 10, mtime: datetime = None) -> Path:
    """Create a file of ``size`` bytes, optionally with a given modification time."""
    path = tmp_path / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    if mtime is not None:
        ts = mtime.timestamp()
        os.utime(path, (ts, ts))
    return path


def backup_file(name: str, day: date, size: int = 100, folder: str = "/backups/client") -> BackupFile:
    return BackupFile(
        name=name,
        path=f"{folder}/{name}",
        extension=os.path.splitext(name)[1].lower(),
        size_bytes=size,
        observed_date=day,
    )


def backup_set(day: date, *names: str, size: int = 100) -> BackupSet:
    names = names or (f"db_{day:%Y%m%d}.bak",)
    return BackupSet(date=day, files=tuple(backup_file(n, day, size) for n in sorted(names)))


@pytest.fixture
def ignore_file(tmp_path) -> Path:
    path = tmp_path / "ignore.txt"
    path.write_text("# comment\n\n_*\n", encoding="utf-8")
    return path
