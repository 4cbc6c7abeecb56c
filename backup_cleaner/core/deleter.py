"""Deletion of backup files selected by the retention policy."""

import logging
import os
from typing import Iterable

from .models import DeletionOutcome, FileToDelete


class DeletionExecutor:
    """Deletes files one by one, collecting failures instead of stopping."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def delete(self, files_to_delete: Iterable[FileToDelete]) -> DeletionOutcome:
        """Delete the given files.

        Files that no longer exist are skipped without counting as deleted or
        as an error, so replaying a list is safe. Freed bytes use the size
        recorded at scan time.

        Args:
            files_to_delete: Files selected for deletion.

        Returns:
            DeletionOutcome with counts and (path, message) errors.
        """
        outcome = DeletionOutcome()

        for file in files_to_delete:
            try:
                if not os.path.isfile(file.file_path):
                    continue
                os.remove(file.file_path)
            except FileNotFoundError:
                # Removed by someone else after the check
                continue
            except OSError as e:
                self.logger.warning(f"Could not delete {file.file_path}: {e}")
                outcome.errors.append((file.file_path, str(e)))
                continue

            outcome.deleted_count += 1
            outcome.freed_bytes += file.size_bytes
            self.logger.debug(f"Deleted {file.file_path}")

        self.logger.info(f"Deleted {outcome.deleted_count} files, freed {outcome.freed_bytes} bytes, "
                         f"{len(outcome.errors)} errors")
        return outcome
