"""Backup date inference from file names."""

import calendar
import logging
import re
from datetime import date, datetime
from typing import Union


class DateExtractor:
    """Infers the logical backup date of a file.

    Dates embedded in the file name are tried in priority order; the first
    pattern whose numbers form a real calendar date wins. When none does, the
    file's last-modified time is used.
    """

    MIN_YEAR = 2000
    MAX_YEAR = 2100

    # (pattern, year-first)
    PATTERNS = [
        (re.compile(r'(\d{4})-(\d{2})-(\d{2})', re.ASCII), True),   # 2024-01-15
        (re.compile(r'(\d{4})(\d{2})(\d{2})', re.ASCII), True),     # 20240115
        (re.compile(r'(\d{2})-(\d{2})-(\d{4})', re.ASCII), False),  # 15-01-2024
        (re.compile(r'(\d{2})(\d{2})(\d{4})', re.ASCII), False),    # 15012024
    ]

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def extract_date(self, file_name: str, fallback_timestamp: Union[datetime, date, float]) -> date:
        """Return the backup date for a file.

        Args:
            file_name: File name, without directory.
            fallback_timestamp: Last-modified time, as a datetime, date or
                POSIX timestamp.

        Returns:
            The calendar day the backup belongs to.
        """
        for pattern, year_first in self.PATTERNS:
            match = pattern.search(file_name)
            if not match:
                continue

            first, second, third = (int(g) for g in match.groups())
            if year_first:
                year, month, day = first, second, third
            else:
                day, month, year = first, second, third

            if self.is_valid_date(year, month, day):
                return date(year, month, day)

        return self._fallback_date(file_name, fallback_timestamp)

    @classmethod
    def is_valid_date(cls, year: int, month: int, day: int) -> bool:
        """Check a candidate date against the supported year range and the calendar."""
        if year < cls.MIN_YEAR or year > cls.MAX_YEAR:
            return False
        if month < 1 or month > 12:
            return False
        return 1 <= day <= calendar.monthrange(year, month)[1]

    def _fallback_date(self, file_name: str, timestamp: Union[datetime, date, float]) -> date:
        if isinstance(timestamp, datetime):
            return timestamp.date()
        if isinstance(timestamp, date):
            return timestamp

        try:
            return datetime.fromtimestamp(timestamp).date()
        except (OverflowError, OSError, ValueError, TypeError) as e:
            self.logger.debug(f"Unusable timestamp for {file_name} ({timestamp!r}): {e}")
            return date.today()
