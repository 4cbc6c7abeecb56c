"""Directory scanning functionality for backup cleaning."""

import os
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from .date_extractor import DateExtractor
from .grouper import BackupSetGrouper, is_backup_file
from .ignore_matcher import IgnoreMatcher
from .models import BackupFile, CustomerScan, IgnoreRule, ScanResult


ProgressCallback = Callable[[int, int, str], None]


class DirectoryScanner:
    """Scans a backup root folder and groups each customer's backups."""

    def __init__(self, workers: int = 1, date_extractor: Optional[DateExtractor] = None,
                 grouper: Optional[BackupSetGrouper] = None):
        """Initialize directory scanner.

        Args:
            workers: Number of customer folders scanned concurrently.
            date_extractor: Date extractor used for every backup file.
            grouper: Grouper used to build backup sets.
        """
        self.workers = max(1, workers)
        self.date_extractor = date_extractor or DateExtractor()
        self.grouper = grouper or BackupSetGrouper()
        self.logger = logging.getLogger(__name__)

    def list_backup_files(self, customer_path: str, rules: List[IgnoreRule]) -> List[BackupFile]:
        """List the backup files directly inside a customer folder.

        Args:
            customer_path: Customer folder to list.
            rules: Ignore rules applied to file names.

        Returns:
            Backup files with their inferred dates. A missing folder yields
            an empty list.
        """
        if not os.path.isdir(customer_path):
            return []

        backup_files = []
        try:
            entries = list(os.scandir(customer_path))
        except OSError as e:
            self.logger.warning(f"Could not list {customer_path}: {e}")
            return []

        for entry in entries:
            if not is_backup_file(entry.name) or IgnoreMatcher.should_ignore(entry.name, rules):
                continue

            try:
                if not entry.is_file():
                    continue
                entry_stat = entry.stat()
            except OSError as e:
                self.logger.debug(f"Skipping {entry.path}: {e}")
                continue

            backup_files.append(BackupFile(
                name=entry.name,
                path=os.path.abspath(entry.path),
                extension=os.path.splitext(entry.name)[1].lower(),
                size_bytes=entry_stat.st_size,
                observed_date=self.date_extractor.extract_date(entry.name, entry_stat.st_mtime)
            ))

        return backup_files

    def scan_customer(self, customer_path: str, rules: List[IgnoreRule]) -> CustomerScan:
        """Scan a single customer folder into backup sets."""
        files = self.list_backup_files(customer_path, rules)
        backup_sets = self.grouper.group(files)
        self.logger.debug(f"Scanned {customer_path}: {len(files)} files in {len(backup_sets)} sets")
        return CustomerScan(
            folder_name=os.path.basename(os.path.normpath(customer_path)),
            folder_path=customer_path,
            backup_sets=backup_sets
        )

    def scan_root(self, root_path: str, rules: List[IgnoreRule],
                  cancel_event: Optional[threading.Event] = None,
                  progress_callback: Optional[ProgressCallback] = None) -> ScanResult:
        """Scan every customer folder below a backup root.

        Customer scans run on a worker pool. Cancellation is checked before a
        customer scan starts; a scan that has started always completes.
        Aggregate counters are only updated on the calling thread.

        Args:
            root_path: Backup root containing one folder per customer.
            rules: Ignore rules for folder and file names.
            cancel_event: Set to stop scanning further customers.
            progress_callback: Called with (current, total, folder_name) as
                each customer completes.

        Returns:
            ScanResult with customers sorted by folder name.
        """
        result = ScanResult(root_path=root_path)
        cancel_event = cancel_event or threading.Event()

        if not os.path.isdir(root_path):
            self.logger.info(f"Backup folder does not exist: {root_path}")
            return result

        try:
            all_directories = sorted(
                entry.path for entry in os.scandir(root_path)
                if entry.is_dir()
            )
        except OSError as e:
            self.logger.warning(f"Could not list backup folder {root_path}: {e}")
            return result

        directories = [
            d for d in all_directories
            if not IgnoreMatcher.should_ignore(os.path.basename(d), rules)
        ]
        result.ignored_count = len(all_directories) - len(directories)

        if not all_directories:
            # No customer folders: treat the root itself as a backup folder
            if not self.list_backup_files(root_path, rules):
                self.logger.info(f"No backup files or customer folders found in {root_path}")
                return result
            result.is_direct_backup_folder = True
            directories = [root_path]

        self.logger.info(f"Starting scan of {len(directories)} folders in {root_path}")

        total = len(directories)
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {
                executor.submit(self._scan_unless_cancelled, directory, rules, cancel_event): directory
                for directory in directories
            }

            for future in as_completed(futures):
                customer = future.result()
                if customer is None:
                    result.cancelled = True
                    continue

                result.customers.append(customer)
                result.processed_count += 1
                result.total_files += customer.file_count
                result.total_size += customer.total_size

                if progress_callback:
                    progress_callback(result.processed_count, total, customer.folder_name)

        result.customers.sort(key=lambda c: c.folder_name)

        if result.cancelled:
            self.logger.info(f"Scan cancelled after {result.processed_count} of {total} folders")
        else:
            self.logger.info(f"Completed scan of {root_path}: {result.processed_count} folders, "
                             f"{result.total_files} backup files")
        return result

    def _scan_unless_cancelled(self, directory: str, rules: List[IgnoreRule],
                               cancel_event: threading.Event) -> Optional[CustomerScan]:
        if cancel_event.is_set():
            return None
        return self.scan_customer(directory, rules)
