"""
Backup Cleaner - retention-based cleanup of per-customer backup folders.

This package groups backup files into dated sets, applies a dual retention
policy (keep the newest N sets and anything younger than a minimum age) and
deletes what falls outside it.
"""

__version__ = "1.0.0"

from .core.cleaner import BackupCleaner
from .core.scanner import DirectoryScanner
from .core.retention import RetentionEvaluator

__all__ = ["BackupCleaner", "DirectoryScanner", "RetentionEvaluator"]
