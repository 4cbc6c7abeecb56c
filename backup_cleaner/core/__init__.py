"""Core cleaning functionality."""

from .cleaner import BackupCleaner
from .date_extractor import DateExtractor
from .deleter import DeletionExecutor
from .grouper import BackupSetGrouper, BACKUP_EXTENSIONS
from .ignore_matcher import IgnoreMatcher
from .retention import RetentionEvaluator, subtract_months
from .scanner import DirectoryScanner
from .models import BackupFile, BackupSet, RetentionTarget, FileToDelete, DeletionOutcome

__all__ = [
    "BackupCleaner", "DateExtractor", "DeletionExecutor", "BackupSetGrouper", "BACKUP_EXTENSIONS",
    "IgnoreMatcher", "RetentionEvaluator", "subtract_months", "DirectoryScanner",
    "BackupFile", "BackupSet", "RetentionTarget", "FileToDelete", "DeletionOutcome",
]
