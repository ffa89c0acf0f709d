"""Duplicate cleanup runs: fetch, resolve, delete, re-index."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from .executor import ActionExecutor
from .models import ApplicationConfig, CleanupReport
from .resolver import DuplicateResolver

if TYPE_CHECKING:
    from ..host.base import LibraryIndex

logger = logging.getLogger(__name__)


class DuplicateCleanupService:
    """Runs complete cleanups against one library index, one at a time."""

    def __init__(
        self,
        index: LibraryIndex,
        config: ApplicationConfig | None = None,
        resolver: DuplicateResolver | None = None,
        executor: ActionExecutor | None = None,
    ):
        self.index = index
        self.config = config or ApplicationConfig()
        self.resolver = resolver or DuplicateResolver(self.config)
        self.executor = executor or ActionExecutor(self.config)
        self._lock = threading.Lock()

    def run(self, dry_run: bool = True) -> CleanupReport:
        """
        Run one cleanup and return the structured report.

        Args:
            dry_run: Report the deletions without performing them

        Returns:
            CleanupReport; ``failed`` is set and no action is listed when the
            library could not be scanned.
        """
        with self._lock:
            logger.info(f"Starting duplicate cleanup (dry_run={dry_run}, key={self.config.group_key})")
            try:
                records = self.index.list_movies()
                groups = self.resolver.find_duplicates(records, self.config.group_key)
            except Exception:
                logger.exception("Error scanning library for duplicates")
                return CleanupReport(dry_run=dry_run, failed=True)

            # Files of every record that is not a discard stay on disk
            discarded = {id(record) for group in groups for record in group.discard}
            protected = [r.path for r in records if id(r) not in discarded and r.path]

            report = self.executor.execute(groups, dry_run=dry_run, protected=protected)

            if not dry_run:
                try:
                    self.index.refresh_library()
                except Exception as e:
                    logger.warning(f"Library refresh not available or failed: {e}")

            return report

    def run_duplicate_cleanup(self, dry_run: bool = True) -> str:
        """Run one cleanup and return the plain-text report."""
        return self.run(dry_run).to_text()
