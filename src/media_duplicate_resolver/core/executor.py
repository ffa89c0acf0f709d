"""Deletion of discarded duplicates and the small folders they leave behind."""

import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from .models import (
    ActionKind,
    ApplicationConfig,
    CleanupAction,
    CleanupReport,
    DuplicateGroup,
    FolderSizePolicy,
    MediaRecord,
)
from .quality import probe_file_size

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Deletes the discarded records of duplicate groups, or reports what it would delete."""

    def __init__(self, config: ApplicationConfig | None = None):
        """
        Initialize the executor.

        Args:
            config: Application configuration, defaults to ApplicationConfig()
        """
        self.config = config or ApplicationConfig()
        # Paths removed so far in the current run (virtually, in dry-run mode)
        self._removed: set[Path] = set()
        # Kept copies of every group in the current run; never deleted
        self._kept: set[Path] = set()

    def execute(
        self,
        groups: Iterable[DuplicateGroup],
        dry_run: bool = True,
        protected: Iterable[str] = (),
    ) -> CleanupReport:
        """
        Process every discarded record of every group.

        Args:
            groups: Ranked duplicate groups from the resolver
            dry_run: Only report the actions without touching the filesystem
            protected: Further paths that must survive the run, like records
                outside any group

        Returns:
            CleanupReport listing the file and folder deletions

        Failures on one record are logged and never stop the batch.
        """
        groups = list(groups)
        self._removed = set()
        kept_paths = [group.keep.path for group in groups if group.ranked]
        kept_paths.extend(protected)
        self._kept = {Path(os.path.abspath(path)) for path in kept_paths if path}
        report = CleanupReport(dry_run=dry_run)

        for group in groups:
            if not group.has_duplicates:
                continue
            report.groups_found += 1
            for record in group.discard:
                try:
                    if not self._process_record(record, group, report, dry_run):
                        report.records_skipped += 1
                except Exception:
                    logger.exception(f"Error processing duplicate movie {record.id}")
                    report.records_skipped += 1

        logger.info(str(report))
        return report

    def _process_record(
        self, record: MediaRecord, group: DuplicateGroup, report: CleanupReport, dry_run: bool
    ) -> bool:
        if not record.path:
            logger.warning(f"Movie path is null or empty for item {record.id}")
            return False

        full_path = Path(os.path.abspath(record.path))

        if full_path in self._kept:
            logger.warning(f"Not deleting {full_path} for item {record.id}: it is a kept copy")
            return False

        if not self._exists(full_path) or not full_path.is_file():
            logger.warning(f"File not found: {full_path}")
            return False

        file_size = probe_file_size(full_path)

        if dry_run:
            if not os.access(full_path.parent, os.W_OK):
                logger.error(f"Would fail to delete {full_path}: permission denied")
                return False
            logger.info(f"Would delete file {full_path}")
        else:
            try:
                full_path.unlink()
            except OSError as e:
                logger.error(f"Failed to delete {full_path}: {e}")
                return False
            logger.info(f"Deleted file {full_path}")

        self._removed.add(full_path)
        report.add(
            CleanupAction(
                kind=ActionKind.FILE_DELETED,
                path=str(full_path),
                group_key=group.key,
                group_value=group.value,
            )
        )

        if self.config.remove_empty_folders:
            self._remove_folder_if_small(full_path.parent, file_size, report, dry_run)
        return True

    def _remove_folder_if_small(
        self,
        folder: Path,
        file_size: int,
        report: CleanupReport,
        dry_run: bool,
    ) -> None:
        if not self._exists(folder) or not folder.is_dir():
            return

        for kept in self._kept:
            if folder in kept.parents:
                logger.debug(f"Keeping folder {folder}: it holds the kept copy {kept}")
                return

        folder_size = self.directory_size(folder)
        if self.config.folder_size_policy == FolderSizePolicy.BEFORE:
            folder_size += file_size

        if folder_size >= self.config.folder_size_threshold:
            logger.debug(
                f"Keeping folder {folder}: {folder_size} bytes "
                f">= threshold {self.config.folder_size_threshold}"
            )
            return

        if dry_run:
            logger.info(f"Would delete folder {folder}")
        else:
            try:
                shutil.rmtree(folder)
            except OSError as e:
                logger.error(f"Failed to delete folder {folder}: {e}")
                return
            logger.info(f"Deleted folder {folder}")

        self._removed.add(folder)
        report.add(CleanupAction(kind=ActionKind.FOLDER_DELETED, path=str(folder)))

    def directory_size(self, folder: Path) -> int:
        """
        Total size in bytes of all files below ``folder``.

        Files removed earlier in the run are not counted. Unreadable entries count as 0.
        """
        total = 0
        try:
            for entry in folder.rglob("*"):
                if self._is_removed(entry):
                    continue
                try:
                    if entry.is_file():
                        total += entry.stat().st_size
                except OSError as e:
                    logger.warning(f"Failed to read size of {entry}: {e}")
        except OSError as e:
            logger.warning(f"Failed to compute directory size for {folder}: {e}")
        return total

    def _is_removed(self, path: Path) -> bool:
        return any(path == removed or removed in path.parents for removed in self._removed)

    def _exists(self, path: Path) -> bool:
        return not self._is_removed(path) and path.exists()
