"""Tests for DeletionExecutor."""

import os
from datetime import date

import pytest

from backup_cleaner.core.deleter import DeletionExecutor
from backup_cleaner.core.models import FileToDelete
from conftest import make_file


def _entry(path, size=100):
    return FileToDelete("client", os.path.basename(path), str(path), date(2023, 1, 1), size)


def test_deletes_files_and_reports_recorded_size(tmp_path) -> None:
    first = make_file(tmp_path, "a.bak", size=5)
    second = make_file(tmp_path, "b.bak", size=5)

    outcome = DeletionExecutor().delete([_entry(first, 1000), _entry(second, 2000)])

    assert not first.exists()
    assert not second.exists()
    assert outcome.deleted_count == 2
    assert outcome.freed_bytes == 3000
    assert outcome.errors == []


def test_second_run_is_a_no_op(tmp_path) -> None:
    files = [_entry(make_file(tmp_path, "a.bak")), _entry(make_file(tmp_path, "b.bak"))]
    executor = DeletionExecutor()
    executor.delete(files)

    outcome = executor.delete(files)
    assert outcome.deleted_count == 0
    assert outcome.freed_bytes == 0
    assert outcome.errors == []


def test_missing_file_is_skipped_silently(tmp_path) -> None:
    present = make_file(tmp_path, "present.bak")
    outcome = DeletionExecutor().delete([_entry(tmp_path / "gone.bak"), _entry(present)])
    assert outcome.deleted_count == 1
    assert outcome.errors == []


def test_file_removed_concurrently_is_not_an_error(tmp_path, monkeypatch) -> None:
    raced = make_file(tmp_path, "raced.bak")
    other = make_file(tmp_path, "other.bak")
    real_remove = os.remove

    def remove_after_other_process(path):
        real_remove(path)
        if str(path) == str(raced):
            raise FileNotFoundError(2, "No such file or directory", str(path))

    monkeypatch.setattr(os, "remove", remove_after_other_process)

    outcome = DeletionExecutor().delete([_entry(raced), _entry(other, 7)])

    assert not raced.exists()
    assert outcome.deleted_count == 1
    assert outcome.freed_bytes == 7
    assert outcome.errors == []


def test_failure_does_not_stop_remaining_files(tmp_path, monkeypatch) -> None:
    locked = make_file(tmp_path, "locked.bak")
    other = make_file(tmp_path, "other.bak")
    real_remove = os.remove

    def fake_remove(path):
        if str(path) == str(locked):
            raise PermissionError("file is in use")
        real_remove(path)

    monkeypatch.setattr(os, "remove", fake_remove)

    outcome = DeletionExecutor().delete([_entry(locked), _entry(other, 7)])

    assert locked.exists()
    assert not other.exists()
    assert outcome.deleted_count == 1
    assert outcome.freed_bytes == 7
    assert outcome.errors == [(str(locked), "file is in use")]


def test_empty_list() -> None:
    outcome = DeletionExecutor().delete([])
    assert (outcome.deleted_count, outcome.freed_bytes, outcome.errors) == (0, 0, [])
