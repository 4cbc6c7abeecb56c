"""Dual retention policy: keep the newest N backup sets and anything younger than a minimum age."""

import calendar
import logging
from datetime import date
from typing import Iterable, List, Sequence, Tuple

from .models import BackupSet, CleanupPlan, FileToDelete, RetentionResult, RetentionTarget


def subtract_months(day: date, months: int) -> date:
    """Subtract calendar months, clamping to the last day of the target month.

    March 31 minus one month is February 28 (or 29 in a leap year).
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


class RetentionEvaluator:
    """Decides which backup sets may be deleted.

    A set is deleted only when it is outside the ``keep_count`` most recent
    sets *and* strictly older than ``today - minimum_age_months``.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def cutoff_date(today: date, minimum_age_months: int) -> date:
        return subtract_months(today, minimum_age_months)

    def evaluate(self, ordered_sets: Sequence[BackupSet], keep_count: int,
                 minimum_age_months: int, today: date) -> RetentionResult:
        """Apply the retention policy to one customer's backup sets.

        Args:
            ordered_sets: Backup sets ordered newest first.
            keep_count: Number of most recent sets always kept.
            minimum_age_months: Sets younger than this are always kept.
            today: Reference day for the age check.

        Returns:
            RetentionResult with the sets to delete and their file/byte totals.

        Raises:
            ValueError: If keep_count or minimum_age_months is negative.
        """
        if keep_count < 0:
            raise ValueError(f"keep_count must be non-negative, got {keep_count}")
        if minimum_age_months < 0:
            raise ValueError(f"minimum_age_months must be non-negative, got {minimum_age_months}")

        cutoff = self.cutoff_date(today, minimum_age_months)
        candidates = ordered_sets[keep_count:]
        sets_to_delete = [s for s in candidates if s.date < cutoff]

        return RetentionResult(
            sets_to_delete=sets_to_delete,
            file_count=sum(s.file_count for s in sets_to_delete),
            total_bytes=sum(s.total_size for s in sets_to_delete)
        )

    def evaluate_stats(self, target: RetentionTarget, sets: Sequence[BackupSet],
                       minimum_age_months: int, today: date) -> Tuple[int, int]:
        """Return (file_count, bytes) that the policy would delete for a target."""
        result = self.evaluate(sets, target.keep_count, minimum_age_months, today)
        return result.file_count, result.total_bytes

    @staticmethod
    def files_to_delete(target: RetentionTarget, result: RetentionResult) -> List[FileToDelete]:
        """Flatten the sets selected for deletion into per-file entries."""
        return [
            FileToDelete(
                customer_name=target.folder_name,
                file_name=backup_file.name,
                file_path=backup_file.path,
                set_date=backup_set.date,
                size_bytes=backup_file.size_bytes
            )
            for backup_set in result.sets_to_delete
            for backup_file in backup_set.files
        ]

    def plan_cleanup(self, customers: Iterable[Tuple[RetentionTarget, Sequence[BackupSet]]],
                     minimum_age_months: int, today: date, automatic: bool = False) -> CleanupPlan:
        """Evaluate several customers and collect every file to delete.

        Disabled targets are skipped. Newly discovered targets are skipped
        and listed when ``automatic`` is set; a manual pass evaluates them.

        Args:
            customers: (target, backup sets) pairs.
            minimum_age_months: Minimum age in months.
            today: Reference day for the age check.
            automatic: True for an unattended run.

        Returns:
            CleanupPlan with the files to delete and the skipped folders.
        """
        plan = CleanupPlan()

        for target, backup_sets in customers:
            if automatic and target.is_new:
                plan.newly_discovered.append(target.folder_name)
                continue
            if not target.enabled:
                plan.skipped_disabled.append(target.folder_name)
                continue

            result = self.evaluate(backup_sets, target.keep_count, minimum_age_months, today)
            plan.files.extend(self.files_to_delete(target, result))

            if result.file_count:
                self.logger.debug(f"{target.folder_name}: {len(result.sets_to_delete)} sets, "
                                  f"{result.file_count} files eligible for deletion")

        self.logger.info(f"Cleanup plan: {plan.file_count} files from {plan.customer_count} customers")
        return plan
