"""Tests for DirectoryScanner."""

import os
import threading
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from backup_cleaner.core.ignore_matcher import IgnoreMatcher
from backup_cleaner.core.scanner import DirectoryScanner
from conftest import make_file


RULES = IgnoreMatcher.parse_patterns(["_*"])


def test_list_backup_files_filters_extensions_and_ignored(tmp_path) -> None:
    make_file(tmp_path, "db_2024-01-15.bak", size=7)
    make_file(tmp_path, "DB_2024-01-15.TRN")
    make_file(tmp_path, "notes.txt")
    make_file(tmp_path, "_temp.bak")
    (tmp_path / "nested.bak").mkdir()

    files = DirectoryScanner().list_backup_files(str(tmp_path), RULES)

    names = sorted(f.name for f in files)
    assert names == ["DB_2024-01-15.TRN", "db_2024-01-15.bak"]
    by_name = {f.name: f for f in files}
    assert by_name["db_2024-01-15.bak"].size_bytes == 7
    assert by_name["DB_2024-01-15.TRN"].extension == ".trn"
    assert all(f.observed_date == date(2024, 1, 15) for f in files)


def test_list_backup_files_uses_modified_time_without_date_in_name(tmp_path) -> None:
    make_file(tmp_path, "invoice.bak", mtime=datetime(2023, 8, 20, 14, 30))
    files = DirectoryScanner().list_backup_files(str(tmp_path), [])
    assert files[0].observed_date == date(2023, 8, 20)


def test_missing_customer_folder_is_empty(tmp_path) -> None:
    scanner = DirectoryScanner()
    assert scanner.list_backup_files(str(tmp_path / "gone"), RULES) == []
    assert scanner.scan_customer(str(tmp_path / "gone"), RULES).backup_sets == []


def test_scan_customer_groups_sets(tmp_path) -> None:
    folder = tmp_path / "ClientA"
    make_file(folder, "db_2024-01-15.bak")
    make_file(folder, "log_20240115.trn")
    make_file(folder, "db_2024-02-01.bak")

    customer = DirectoryScanner().scan_customer(str(folder), RULES)

    assert customer.folder_name == "ClientA"
    assert [s.date for s in customer.backup_sets] == [date(2024, 2, 1), date(2024, 1, 15)]
    assert customer.backup_sets[1].file_count == 2


def test_scan_root_skips_ignored_folders(tmp_path) -> None:
    make_file(tmp_path / "ClientB", "db_2024-01-01.bak", size=3)
    make_file(tmp_path / "ClientA", "db_2024-01-01.bak", size=4)
    make_file(tmp_path / "_Archive", "db_2024-01-01.bak")
    make_file(tmp_path, "stray.bak")

    progress = []
    result = DirectoryScanner(workers=2).scan_root(
        str(tmp_path), RULES, progress_callback=lambda *args: progress.append(args)
    )

    assert [c.folder_name for c in result.customers] == ["ClientA", "ClientB"]
    assert result.ignored_count == 1
    assert not result.is_direct_backup_folder
    assert not result.cancelled
    assert result.processed_count == 2
    assert result.total_files == 2
    assert result.total_size == 7
    assert sorted(p[0] for p in progress) == [1, 2]
    assert all(p[1] == 2 for p in progress)


def test_scan_root_treats_folder_without_subfolders_as_backup_folder(tmp_path) -> None:
    make_file(tmp_path, "db_2024-01-01.bak")
    make_file(tmp_path, "db_2024-01-02.bak")

    result = DirectoryScanner().scan_root(str(tmp_path), RULES)

    assert result.is_direct_backup_folder
    assert len(result.customers) == 1
    assert result.customers[0].folder_path == str(tmp_path)
    assert result.customers[0].total_backups == 2


def test_scan_root_without_backups_is_empty(tmp_path) -> None:
    make_file(tmp_path, "readme.txt")
    result = DirectoryScanner().scan_root(str(tmp_path), RULES)
    assert result.customers == []
    assert not result.is_direct_backup_folder


def test_scan_root_only_ignored_folders_is_not_direct(tmp_path) -> None:
    make_file(tmp_path / "_Archive", "db_2024-01-01.bak")
    make_file(tmp_path, "db_2024-01-01.bak")
    result = DirectoryScanner().scan_root(str(tmp_path), RULES)
    assert result.customers == []
    assert result.ignored_count == 1
    assert not result.is_direct_backup_folder


def test_missing_root_is_empty(tmp_path) -> None:
    result = DirectoryScanner().scan_root(str(tmp_path / "missing"), RULES)
    assert result.customers == []
    assert not result.cancelled


def test_cancellation_before_start_scans_nothing(tmp_path) -> None:
    make_file(tmp_path / "ClientA", "db_2024-01-01.bak")
    make_file(tmp_path / "ClientB", "db_2024-01-01.bak")
    cancel = threading.Event()
    cancel.set()

    result = DirectoryScanner().scan_root(str(tmp_path), RULES, cancel_event=cancel)

    assert result.cancelled
    assert result.customers == []
    assert result.processed_count == 0


def test_cancellation_during_a_scan_lets_it_finish(tmp_path) -> None:
    for name in ("ClientA", "ClientB", "ClientC"):
        make_file(tmp_path / name, "db_2024-01-01.bak")
    cancel = threading.Event()

    scanner = DirectoryScanner(workers=1)
    original_scan = scanner.scan_customer

    def scan_then_cancel(path, rules):
        customer = original_scan(path, rules)
        cancel.set()
        return customer

    scanner.scan_customer = scan_then_cancel
    result = scanner.scan_root(str(tmp_path), RULES, cancel_event=cancel)

    assert result.cancelled
    assert [c.folder_name for c in result.customers] == ["ClientA"]
    assert result.customers[0].total_backups == 1
    assert result.processed_count == 1


class _EntryWithMtime:
    """Directory entry that reports a different modification time."""

    def __init__(self, entry, st_mtime):
        self._entry = entry
        self._st_mtime = st_mtime
        self.name = entry.name
        self.path = entry.path

    def is_file(self, *args, **kwargs):
        return self._entry.is_file(*args, **kwargs)

    def is_dir(self, *args, **kwargs):
        return self._entry.is_dir(*args, **kwargs)

    def stat(self, *args, **kwargs):
        return SimpleNamespace(st_size=self._entry.stat().st_size, st_mtime=self._st_mtime)


def test_unrepresentable_modified_time_does_not_abort_scan(tmp_path, monkeypatch) -> None:
    make_file(tmp_path / "ClientA", "nodate.bak")
    make_file(tmp_path / "ClientB", "db_2024-01-01.bak")
    real_scandir = os.scandir

    def scandir_with_far_future_mtime(path):
        return [
            _EntryWithMtime(entry, 3e11) if entry.name == "nodate.bak" else entry
            for entry in real_scandir(path)
        ]

    monkeypatch.setattr(os, "scandir", scandir_with_far_future_mtime)

    result = DirectoryScanner().scan_root(str(tmp_path), RULES)

    assert [c.folder_name for c in result.customers] == ["ClientA", "ClientB"]
    assert result.customers[0].backup_sets[0].date == date.today()
    assert result.customers[1].backup_sets[0].date == date(2024, 1, 1)


def test_symlinked_customer_folder_is_scanned(tmp_path) -> None:
    target = tmp_path / "elsewhere" / "ClientA"
    make_file(target, "db_2024-01-01.bak")
    root = tmp_path / "root"
    root.mkdir()
    try:
        os.symlink(target, root / "ClientA", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")

    result = DirectoryScanner().scan_root(str(root), RULES)

    assert [c.folder_name for c in result.customers] == ["ClientA"]
    assert result.customers[0].total_backups == 1
