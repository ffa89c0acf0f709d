"""Quality metric access for ranking duplicate records."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class QualitySource(Protocol):
    """Anything that can report the heights and bitrates of its streams."""

    def heights(self) -> Iterable[int]:
        ...

    def bitrates(self) -> Iterable[int]:
        ...


def _safe_max(accessor: Callable[[], Iterable[int]], label: str, record_id: str) -> int:
    try:
        values = [v for v in accessor() if isinstance(v, int) and not isinstance(v, bool)]
    except Exception as e:
        logger.debug(f"Could not read {label} for record {record_id}: {e}")
        return 0
    return max(values, default=0)


def max_height(record: QualitySource) -> int:
    """
    Highest stream height of a record.

    Returns 0 when the record has no streams or its metadata cannot be read.
    """
    return _safe_max(record.heights, "heights", getattr(record, "id", "?"))


def max_bitrate(record: QualitySource) -> int:
    """Highest stream bitrate of a record, 0 when unavailable."""
    return _safe_max(record.bitrates, "bitrates", getattr(record, "id", "?"))


def probe_file_size(path: str | os.PathLike | None) -> int:
    """
    Size of the file at ``path`` in bytes.

    Never raises: a missing path or any filesystem error yields 0.
    """
    if not path:
        return 0
    try:
        file_path = Path(path)
        if not file_path.is_file():
            return 0
        return file_path.stat().st_size
    except (OSError, ValueError) as e:
        logger.debug(f"Could not stat {path}: {e}")
        return 0
