"""Library index adapters for media servers."""

from .base import LibraryIndex, record_from_item, records_from_items
from .jellyfin import JellyfinLibraryIndex, JellyfinSettings
from .snapshot import JsonSnapshotIndex

__all__ = [
    "JellyfinLibraryIndex",
    "JellyfinSettings",
    "JsonSnapshotIndex",
    "LibraryIndex",
    "record_from_item",
    "records_from_items",
]
