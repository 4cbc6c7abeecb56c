"""Main backup cleaning coordinator."""

import logging
import os
import threading
from datetime import date, datetime
from typing import List, Optional

from .deleter import DeletionExecutor
from .ignore_matcher import IgnoreMatcher
from .models import (
    AutomaticCleanupSummary, CleanupPlan, CustomerReport, CustomerScan,
    DeletionOutcome, IgnoreRule, RetentionTarget, ScanResult
)
from .retention import RetentionEvaluator
from .scanner import DirectoryScanner, ProgressCallback
from .schedule import is_auto_cleanup_due
from ..config.config_manager import ConfigManager


class BackupCleaner:
    """Coordinates scanning, retention evaluation and deletion."""

    def __init__(self, config_path: Optional[str] = None,
                 config_manager: Optional[ConfigManager] = None):
        """Initialize backup cleaner.

        Args:
            config_path: Optional path to configuration file.
            config_manager: Pre-built configuration manager, used instead of
                loading from ``config_path``.
        """
        self.logger = logging.getLogger(__name__)

        if config_manager is None:
            config_manager = ConfigManager(config_path)
            load_result = config_manager.load_config()
            if load_result.error:
                self.logger.warning(f"Configuration {load_result.error.kind.value} "
                                    f"({load_result.error.source}): {load_result.error.message}")
        self.config_manager = config_manager

        self.ignore_matcher = IgnoreMatcher(self.config_manager.get_ignore_file())
        self.scanner = DirectoryScanner(workers=self.config_manager.get_scan_config().get('workers', 1))
        self.evaluator = RetentionEvaluator()
        self.deleter = DeletionExecutor()

    @property
    def backup_folder_path(self) -> Optional[str]:
        return self.config_manager.get_backup_folder_path()

    @property
    def minimum_age_months(self) -> int:
        return self.config_manager.get_minimum_age_months()

    def load_ignore_rules(self) -> List[IgnoreRule]:
        """Reload ignore rules; a load failure means nothing is ignored."""
        result = self.ignore_matcher.load()
        if result.error:
            self.logger.warning(f"Ignore file {result.error.kind.value}: {result.error.message}. "
                                f"No patterns will be ignored")
        return result.rules

    def scan(self, cancel_event: Optional[threading.Event] = None,
             progress_callback: Optional[ProgressCallback] = None) -> ScanResult:
        """Scan the configured backup folder.

        Args:
            cancel_event: Set to stop before the next customer folder.
            progress_callback: Called with (current, total, folder_name).

        Returns:
            ScanResult; empty when no backup folder is configured or it is missing.
        """
        root = self.backup_folder_path
        if not root:
            self.logger.info("No backup folder configured")
            return ScanResult(root_path="")

        rules = self.load_ignore_rules()
        return self.scanner.scan_root(root, rules, cancel_event, progress_callback)

    def resolve_target(self, customer: CustomerScan) -> RetentionTarget:
        """Build the retention target of a customer from its saved settings."""
        saved = self.config_manager.get_customer(customer.folder_name)
        if saved is None:
            return RetentionTarget(
                folder_name=customer.folder_name,
                folder_path=customer.folder_path,
                keep_count=self.config_manager.get_default_keep_count(),
                enabled=True,
                is_new=True
            )

        return RetentionTarget(
            folder_name=customer.folder_name,
            folder_path=customer.folder_path,
            keep_count=saved.get('keep_count', self.config_manager.get_default_keep_count()),
            enabled=saved.get('enabled', True)
        )

    def build_reports(self, scan_result: ScanResult, today: Optional[date] = None) -> List[CustomerReport]:
        """Compute per-customer retention statistics for a scan.

        Only reads the already grouped backup sets, so it can be called again
        whenever keep counts or the minimum age change.
        """
        today = today or date.today()
        reports = []

        for customer in scan_result.customers:
            target = self.resolve_target(customer)
            file_count, size = self.evaluator.evaluate_stats(
                target, customer.backup_sets, self.minimum_age_months, today
            )
            reports.append(CustomerReport(
                target=target,
                total_backups=customer.total_backups,
                files_to_delete=file_count,
                bytes_to_free=size
            ))

        return reports

    def build_cleanup_plan(self, scan_result: ScanResult, automatic: bool = False,
                           today: Optional[date] = None) -> CleanupPlan:
        """Collect the files to delete for every enabled customer."""
        customers = [
            (self.resolve_target(customer), customer.backup_sets)
            for customer in scan_result.customers
        ]
        return self.evaluator.plan_cleanup(
            customers, self.minimum_age_months, today or date.today(), automatic=automatic
        )

    def delete(self, plan: CleanupPlan) -> DeletionOutcome:
        return self.deleter.delete(plan.files)

    def update_customer(self, folder_name: str, keep_count: Optional[int] = None,
                        enabled: Optional[bool] = None) -> RetentionTarget:
        """Save a customer's settings; the folder is no longer treated as new.

        Returns:
            The customer's retention target after the update.
        """
        settings = self.config_manager.set_customer(folder_name, keep_count=keep_count, enabled=enabled)
        self.config_manager.save()

        folder_path = os.path.join(self.backup_folder_path or "", folder_name)
        return RetentionTarget(
            folder_name=folder_name,
            folder_path=folder_path,
            keep_count=settings['keep_count'],
            enabled=settings['enabled']
        )

    def is_auto_cleanup_due(self, now: Optional[datetime] = None) -> bool:
        auto_config = self.config_manager.get_auto_cleanup_config()
        if not auto_config.get('enabled', False):
            return False
        return is_auto_cleanup_due(
            self.config_manager.get_last_auto_cleanup(),
            now or datetime.now(),
            auto_config.get('run_hour', 2)
        )

    def run_automatic_cleanup(self, now: Optional[datetime] = None) -> AutomaticCleanupSummary:
        """Run an unattended cleanup of every enabled, known customer.

        Newly discovered folders are skipped and listed in the summary.
        Deletion happens without confirmation.

        Args:
            now: Current time, used for the age cutoff and the run timestamp.

        Returns:
            AutomaticCleanupSummary describing what happened.
        """
        now = now or datetime.now()
        root = self.backup_folder_path

        if not root or not os.path.isdir(root):
            reason = "No backup folder configured" if not root else f"Backup folder not found: {root}"
            self.logger.warning(f"Automatic cleanup skipped: {reason}")
            return AutomaticCleanupSummary(ran=False, timestamp=now, reason=reason)

        self.logger.info("Starting automatic cleanup")

        scan_result = self.scan()
        plan = self.build_cleanup_plan(scan_result, automatic=True, today=now.date())

        if plan.files:
            outcome = self.delete(plan)
        else:
            outcome = DeletionOutcome()
            self.logger.info("Automatic cleanup: no files to delete")

        if plan.newly_discovered:
            self.logger.info(f"Automatic cleanup skipped {len(plan.newly_discovered)} new folders: "
                             f"{', '.join(plan.newly_discovered)}")

        self.config_manager.set_last_auto_cleanup(now)
        try:
            self.config_manager.save()
        except OSError as e:
            self.logger.error(f"Could not save configuration after automatic cleanup: {e}")

        return AutomaticCleanupSummary(ran=True, timestamp=now, plan=plan, outcome=outcome)
