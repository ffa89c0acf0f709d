"""Library index contract and conversion of server items into media records."""

import logging
from typing import Any, Protocol

from ..core.models import MediaRecord, QualityMetric

logger = logging.getLogger(__name__)


class LibraryIndex(Protocol):
    """Source of movie records and the place to request a re-index."""

    def list_movies(self) -> list[MediaRecord]:
        """Return a fresh snapshot of every movie in the library."""
        ...

    def refresh_library(self) -> None:
        """Ask the server to rescan its library."""
        ...

    def close(self) -> None:
        """Release connections held by the index."""
        ...

    def __enter__(self) -> "LibraryIndex":
        ...

    def __exit__(self, *exc_info: object) -> None:
        ...


def _stream_metrics(streams: Any) -> list[QualityMetric]:
    metrics = []
    if not isinstance(streams, list):
        return metrics
    for stream in streams:
        if not isinstance(stream, dict):
            continue
        height = stream.get("Height")
        bitrate = stream.get("BitRate")
        if height is None and bitrate is None:
            continue
        metrics.append(QualityMetric(height=height, bitrate=bitrate))
    return metrics


def record_from_item(item: dict[str, Any]) -> MediaRecord:
    """
    Build a MediaRecord from a Jellyfin/Emby item as returned by ``/Items``.

    Streams are read from every entry of ``MediaSources``; items without media
    sources fall back to their top-level ``MediaStreams``. Malformed stream data
    results in fewer (or no) quality metrics rather than an error.
    """
    metrics: list[QualityMetric] = []
    sources = item.get("MediaSources")
    if isinstance(sources, list) and sources:
        for source in sources:
            if isinstance(source, dict):
                metrics.extend(_stream_metrics(source.get("MediaStreams")))
    else:
        metrics.extend(_stream_metrics(item.get("MediaStreams")))

    provider_ids = item.get("ProviderIds")
    if not isinstance(provider_ids, dict):
        provider_ids = {}

    return MediaRecord(
        id=item["Id"],
        name=item.get("Name") or "",
        provider_ids=provider_ids,
        path=item.get("Path"),
        quality_metrics=metrics,
    )


def records_from_items(items: list[dict[str, Any]]) -> list[MediaRecord]:
    """Convert items, skipping the ones without an id."""
    records = []
    for item in items:
        if not isinstance(item, dict) or "Id" not in item:
            logger.debug(f"Skipping library item without id: {item!r}")
            continue
        records.append(record_from_item(item))
    return records
