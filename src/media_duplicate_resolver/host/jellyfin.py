"""Jellyfin (and Emby-compatible) library index over HTTP."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, field_validator

from ..core.exceptions import InvalidLibraryDataError, LibraryUnavailableError
from ..core.models import MediaRecord
from .base import records_from_items

logger = logging.getLogger(__name__)

ITEM_FIELDS = "ProviderIds,Path,MediaSources,MediaStreams"


class JellyfinSettings(BaseModel):
    """Connection settings for a Jellyfin server."""

    base_url: str = Field(..., description="Server URL, e.g. http://localhost:8096")
    api_key: str = Field(..., description="API key sent as X-Emby-Token")
    user_id: str | None = Field(None, description="Query items as this user instead of globally")
    page_size: int = Field(default=500, gt=0, description="Items fetched per request")
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://: {v}")
        return v


class JellyfinLibraryIndex:
    """Reads movies from a Jellyfin server and requests library scans."""

    def __init__(self, settings: JellyfinSettings, client: httpx.Client | None = None):
        """
        Initialize the index.

        Args:
            settings: Server connection settings
            client: Preconfigured httpx client, mainly for tests
        """
        self.settings = settings
        self._client = client or httpx.Client(
            base_url=settings.base_url,
            headers={"X-Emby-Token": settings.api_key, "Accept": "application/json"},
            timeout=settings.timeout_seconds,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "JellyfinLibraryIndex":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LibraryUnavailableError(
                f"{method} {url} failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise LibraryUnavailableError(f"{method} {url} failed: {e}") from e
        return response

    def ping(self) -> bool:
        """Check that the server answers. Never raises."""
        try:
            self._request("GET", "/System/Ping")
        except LibraryUnavailableError as e:
            logger.warning(f"Jellyfin server not reachable: {e}")
            return False
        return True

    def _items_url(self) -> str:
        if self.settings.user_id:
            return f"/Users/{self.settings.user_id}/Items"
        return "/Items"

    def fetch_movie_items(self) -> list[dict[str, Any]]:
        """
        Fetch the raw item dictionaries of every movie, page by page.

        Raises:
            LibraryUnavailableError: If a request fails
            InvalidLibraryDataError: If a response is not the expected JSON shape
        """
        items: list[dict[str, Any]] = []
        start_index = 0

        while True:
            params = {
                "IncludeItemTypes": "Movie",
                "Recursive": "true",
                "Fields": ITEM_FIELDS,
                "StartIndex": start_index,
                "Limit": self.settings.page_size,
            }
            response = self._request("GET", self._items_url(), params=params)
            try:
                payload = response.json()
                page = payload["Items"]
            except (ValueError, KeyError, TypeError) as e:
                raise InvalidLibraryDataError(
                    f"Unexpected /Items response: {e}", source=str(response.url)
                ) from e
            if not isinstance(page, list):
                raise InvalidLibraryDataError("Items is not a list", source=str(response.url))

            items.extend(page)
            total = payload.get("TotalRecordCount", len(items))
            logger.debug(f"Fetched {len(items)}/{total} movie items")

            if not page or len(items) >= total:
                break
            start_index += len(page)

        logger.info(f"Fetched {len(items)} movie items from {self.settings.base_url}")
        return items

    def list_movies(self) -> list[MediaRecord]:
        return records_from_items(self.fetch_movie_items())

    def refresh_library(self) -> None:
        """Queue a library scan on the server."""
        self._request("POST", "/Library/Refresh")
        logger.info("Requested library refresh")
