"""Duplicate resolution: grouping records by provider id and ranking them by quality."""

import logging
from collections.abc import Sequence
from typing import Callable

from .models import ApplicationConfig, DuplicateGroup, MediaRecord, RankedRecord
from .quality import max_bitrate, max_height, probe_file_size

logger = logging.getLogger(__name__)


class DuplicateResolver:
    """Groups media records by a provider id and picks the best copy of each."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        size_probe: Callable[[str | None], int] = probe_file_size,
    ):
        """
        Initialize the resolver.

        Args:
            config: Application configuration, defaults to ApplicationConfig()
            size_probe: Returns the file size for a path, 0 when unreadable
        """
        self.config = config or ApplicationConfig()
        self.size_probe = size_probe

    def group_by_provider_id(
        self, records: Sequence[MediaRecord], group_key: str
    ) -> dict[str, list[MediaRecord]]:
        """
        Partition records by the value of one provider id.

        Args:
            records: Records to partition
            group_key: Provider name, e.g. "Imdb"

        Returns:
            Dictionary mapping provider id values to records, both in input order.
            Records without the provider id are left out.

        Example:
            >>> resolver = DuplicateResolver()
            >>> groups = resolver.group_by_provider_id(records, "Imdb")
            >>> groups["tt0111161"]  # [record1, record3]
        """
        groups: dict[str, list[MediaRecord]] = {}
        skipped = 0

        for record in records:
            provider_ids = getattr(record, "provider_ids", None) or {}
            value = provider_ids.get(group_key)
            if not value:
                skipped += 1
                continue
            groups.setdefault(value, []).append(record)

        logger.info(
            f"Grouped {len(records) - skipped} records into {len(groups)} {group_key} groups "
            f"({skipped} without {group_key} id)"
        )
        return groups

    def rank_record(self, record: MediaRecord) -> RankedRecord:
        """Compute the quality values a record is ranked by."""
        return RankedRecord(
            record=record,
            max_height=max_height(record),
            max_bitrate=max_bitrate(record),
            file_size=self.size_probe(getattr(record, "path", None)),
        )

    def rank(self, records: Sequence[MediaRecord]) -> list[RankedRecord]:
        """
        Rank records best first by (max height, max bitrate, file size).

        The sort is stable, so records that tie on all three keep their input order.
        """
        ranked = [self.rank_record(record) for record in records]
        ranked.sort(key=lambda entry: entry.sort_key, reverse=True)
        return ranked

    def resolve(
        self, records: Sequence[MediaRecord], group_key: str | None = None
    ) -> list[DuplicateGroup]:
        """
        Build ranked duplicate groups from a collection of records.

        Args:
            records: Records fetched from the library index
            group_key: Provider name to group by, defaults to the configured key

        Returns:
            One DuplicateGroup per provider id value, in order of first appearance.
            Groups of one record are included and have nothing to discard.
        """
        group_key = group_key or self.config.group_key
        partitions = self.group_by_provider_id(records, group_key)

        groups = []
        for value, members in partitions.items():
            group = DuplicateGroup(key=group_key, value=value, ranked=self.rank(members))
            groups.append(group)
            if group.has_duplicates:
                best = group.ranked[0]
                logger.debug(
                    f"{group}: keeping {group.keep.id} "
                    f"(height={best.max_height}, bitrate={best.max_bitrate}, size={best.file_size}), "
                    f"discarding {[r.id for r in group.discard]}"
                )

        return groups

    def find_duplicates(
        self, records: Sequence[MediaRecord], group_key: str | None = None
    ) -> list[DuplicateGroup]:
        """Like resolve(), but only the groups that have something to discard."""
        groups = [g for g in self.resolve(records, group_key) if g.has_duplicates]
        logger.info(f"Found {len(groups)} groups with duplicates")
        return groups


def resolve(records: Sequence[MediaRecord], group_key: str = "Imdb") -> list[DuplicateGroup]:
    """Group and rank ``records`` with a default resolver."""
    return DuplicateResolver().resolve(records, group_key)
