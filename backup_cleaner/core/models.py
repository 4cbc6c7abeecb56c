"""Data models for backup cleaning."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class BackupFile:
    """A single backup file found in a customer folder."""
    name: str
    path: str
    extension: str
    size_bytes: int
    observed_date: date


@dataclass(frozen=True)
class BackupSet:
    """All backup files of one customer that share a calendar day."""
    date: date
    files: Tuple[BackupFile, ...]

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size_bytes for f in self.files)


@dataclass(frozen=True)
class RetentionTarget:
    """A customer folder together with its retention settings."""
    folder_name: str
    folder_path: str
    keep_count: int
    enabled: bool = True
    is_new: bool = False


@dataclass(frozen=True)
class IgnoreRule:
    """A compiled wildcard pattern from the ignore file."""
    raw_pattern: str
    compiled_matcher: Pattern


@dataclass(frozen=True)
class FileToDelete:
    """A file selected for deletion, captured at scan time."""
    customer_name: str
    file_name: str
    file_path: str
    set_date: date
    size_bytes: int


@dataclass
class DeletionOutcome:
    """Aggregate result of a deletion run."""
    deleted_count: int = 0
    freed_bytes: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)


class LoadErrorKind(Enum):
    MISSING = "missing"
    UNREADABLE = "unreadable"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class LoadError:
    """Why a configuration or ignore source could not be used as-is."""
    kind: LoadErrorKind
    source: str
    message: str


@dataclass
class IgnoreLoadResult:
    rules: List[IgnoreRule]
    error: Optional[LoadError] = None


@dataclass
class ConfigLoadResult:
    config: Dict[str, Any]
    path: Optional[str] = None
    error: Optional[LoadError] = None


@dataclass
class CustomerScan:
    """Grouped backup sets of one customer folder, newest first."""
    folder_name: str
    folder_path: str
    backup_sets: List[BackupSet]

    @property
    def total_backups(self) -> int:
        return len(self.backup_sets)

    @property
    def file_count(self) -> int:
        return sum(s.file_count for s in self.backup_sets)

    @property
    def total_size(self) -> int:
        return sum(s.total_size for s in self.backup_sets)


@dataclass
class ScanResult:
    """Result of scanning a backup root folder."""
    root_path: str
    customers: List[CustomerScan] = field(default_factory=list)
    ignored_count: int = 0
    is_direct_backup_folder: bool = False
    cancelled: bool = False
    processed_count: int = 0
    total_files: int = 0
    total_size: int = 0


@dataclass
class RetentionResult:
    """Backup sets selected for deletion by the retention policy."""
    sets_to_delete: List[BackupSet]
    file_count: int = 0
    total_bytes: int = 0


@dataclass
class CustomerReport:
    """Retention statistics for one customer folder."""
    target: RetentionTarget
    total_backups: int
    files_to_delete: int
    bytes_to_free: int


@dataclass
class CleanupPlan:
    """Files to delete across customers, plus the folders that were skipped."""
    files: List[FileToDelete] = field(default_factory=list)
    newly_discovered: List[str] = field(default_factory=list)
    skipped_disabled: List[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def customer_count(self) -> int:
        return len({f.customer_name for f in self.files})


@dataclass
class AutomaticCleanupSummary:
    """Outcome of an unattended cleanup run."""
    ran: bool
    timestamp: datetime
    reason: Optional[str] = None
    plan: CleanupPlan = field(default_factory=CleanupPlan)
    outcome: DeletionOutcome = field(default_factory=DeletionOutcome)
