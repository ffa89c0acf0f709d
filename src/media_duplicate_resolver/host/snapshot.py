"""Library index backed by a JSON export of ``/Items``."""

import json
import logging
from pathlib import Path

from ..core.exceptions import InvalidLibraryDataError, LibraryUnavailableError
from ..core.models import MediaRecord
from .base import records_from_items

logger = logging.getLogger(__name__)


class JsonSnapshotIndex:
    """
    Reads movie items from a JSON file.

    The file holds either a list of items or an ``/Items`` response object
    with an ``Items`` list. Useful for offline runs against a saved export.
    """

    def __init__(self, snapshot_path: Path):
        self.snapshot_path = Path(snapshot_path)

    def list_movies(self) -> list[MediaRecord]:
        try:
            with open(self.snapshot_path, encoding="utf-8") as f:
                payload = json.load(f)
        except OSError as e:
            raise LibraryUnavailableError(f"Cannot read snapshot {self.snapshot_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidLibraryDataError(
                f"Invalid JSON in snapshot: {e}", source=str(self.snapshot_path)
            ) from e

        items = payload.get("Items") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise InvalidLibraryDataError(
                "Snapshot must be a list of items or an object with an Items list",
                source=str(self.snapshot_path),
            )

        # Exports may mix item types; only movies are considered
        movies = [i for i in items if not isinstance(i, dict) or i.get("Type", "Movie") == "Movie"]
        logger.info(f"Loaded {len(movies)} movie items from {self.snapshot_path}")
        return records_from_items(movies)

    def refresh_library(self) -> None:
        logger.info("Snapshot index has no server to refresh")

    def close(self) -> None:
        pass

    def __enter__(self) -> "JsonSnapshotIndex":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
