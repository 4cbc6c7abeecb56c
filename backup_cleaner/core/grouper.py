"""Grouping of backup files into dated backup sets."""

import os
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List

from .models import BackupFile, BackupSet


BACKUP_EXTENSIONS = frozenset({'.bak', '.trn', '.zip', '.7z', '.rar', '.gz', '.tar'})


def is_backup_file(file_name: str) -> bool:
    """Check a file name against the backup extension allow-list (case-insensitive)."""
    return os.path.splitext(file_name)[1].lower() in BACKUP_EXTENSIONS


def _calendar_day(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


class BackupSetGrouper:
    """Clusters one customer's backup files into sets, one per calendar day."""

    def group(self, files: Iterable[BackupFile]) -> List[BackupSet]:
        """Group backup files by day.

        Args:
            files: Backup files of a single customer folder, already filtered
                to backup extensions and ignore rules.

        Returns:
            Backup sets ordered newest first. Files within a set are sorted by
            name so the result does not depend on enumeration order.
        """
        grouped: Dict[date, List[BackupFile]] = defaultdict(list)
        for backup_file in files:
            grouped[_calendar_day(backup_file.observed_date)].append(backup_file)

        return [
            BackupSet(
                date=day,
                files=tuple(sorted(grouped[day], key=lambda f: (f.name, f.path)))
            )
            for day in sorted(grouped, reverse=True)
        ]
