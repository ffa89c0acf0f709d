"""Pydantic models for media duplicate resolver."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GROUP_KEY = "Imdb"
DEFAULT_FOLDER_SIZE_THRESHOLD = 20 * 1024 * 1024


class QualityMetric(BaseModel):
    """Height and bitrate of one encoded stream attached to a media record."""

    model_config = ConfigDict(frozen=True)

    height: int | None = Field(None, description="Stream height in pixels")
    bitrate: int | None = Field(None, description="Stream bitrate in bits per second")

    @field_validator("height", "bitrate", mode="before")
    @classmethod
    def drop_invalid(cls, v: object) -> int | None:
        """Treat non-integer or negative values as missing."""
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, bool) or not isinstance(v, int) or v < 0:
            return None
        return v


class MediaRecord(BaseModel):
    """Snapshot of one movie item as reported by the library index."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque item identifier")
    name: str = Field("", description="Display name")
    provider_ids: dict[str, str] = Field(
        default_factory=dict, description="External system name to external id"
    )
    path: str | None = Field(None, description="Filesystem path of the media file")
    quality_metrics: list[QualityMetric] = Field(
        default_factory=list, description="Quality of each stream, in stream order"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> str:
        return str(v)

    @field_validator("provider_ids", mode="before")
    @classmethod
    def clean_provider_ids(cls, v: object) -> dict[str, str]:
        """Drop null provider ids and stringify the rest."""
        if not v:
            return {}
        return {str(key): str(value) for key, value in dict(v).items() if value is not None}

    def heights(self) -> list[int]:
        """Heights of all streams that report one."""
        return [m.height for m in self.quality_metrics if m.height is not None]

    def bitrates(self) -> list[int]:
        """Bitrates of all streams that report one."""
        return [m.bitrate for m in self.quality_metrics if m.bitrate is not None]

    def provider_id(self, key: str) -> str | None:
        """Return the provider id for ``key``, or None if absent or empty."""
        value = self.provider_ids.get(key)
        return value or None

    def __str__(self) -> str:
        return f"{self.name or self.id} ({self.path})"


@dataclass
class RankedRecord:
    """A record together with the quality values it was ranked by."""

    record: MediaRecord
    max_height: int = 0
    max_bitrate: int = 0
    file_size: int = 0

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.max_height, self.max_bitrate, self.file_size)


@dataclass
class DuplicateGroup:
    """All records sharing one provider id value, best quality first."""

    key: str
    value: str
    ranked: list[RankedRecord] = field(default_factory=list)

    @property
    def keep(self) -> MediaRecord:
        """The top-ranked record, which is never deleted."""
        return self.ranked[0].record

    @property
    def discard(self) -> list[MediaRecord]:
        """Every record below the top rank, in ranked order."""
        return [entry.record for entry in self.ranked[1:]]

    @property
    def record_count(self) -> int:
        return len(self.ranked)

    @property
    def has_duplicates(self) -> bool:
        return len(self.ranked) > 1

    def __str__(self) -> str:
        return f"Duplicate group {self.key}={self.value} ({self.record_count} records)"


class FolderSizePolicy(str, Enum):
    """Which directory size is compared against the folder threshold."""

    AFTER = "after"  # size once the discarded file is gone
    BEFORE = "before"  # size including the discarded file


class ActionKind(str, Enum):
    FILE_DELETED = "file_deleted"
    FOLDER_DELETED = "folder_deleted"


class CleanupAction(BaseModel):
    """A single deletion performed (or, in dry-run, planned)."""

    kind: ActionKind
    path: str
    group_key: str | None = None
    group_value: str | None = None

    def to_line(self) -> str:
        """Render the action as one report line."""
        if self.kind == ActionKind.FOLDER_DELETED:
            return f"Folder deleted {self.path}."
        return f"File deleted {self.path} ({self.group_key}={self.group_value})"


class CleanupReport(BaseModel):
    """Outcome of one cleanup run."""

    dry_run: bool = Field(..., description="Whether the filesystem was left untouched")
    actions: list[CleanupAction] = Field(default_factory=list)
    groups_found: int = Field(default=0, ge=0, description="Groups holding duplicates")
    records_skipped: int = Field(default=0, ge=0, description="Discards that could not be removed")
    failed: bool = Field(default=False, description="The library scan itself failed")
    started_at: datetime = Field(default_factory=datetime.now)

    @property
    def files_deleted(self) -> int:
        return sum(1 for a in self.actions if a.kind == ActionKind.FILE_DELETED)

    @property
    def folders_deleted(self) -> int:
        return sum(1 for a in self.actions if a.kind == ActionKind.FOLDER_DELETED)

    def add(self, action: CleanupAction) -> None:
        self.actions.append(action)

    def to_text(self) -> str:
        """Plain-text report, one newline-terminated line per action."""
        return "".join(f"{action.to_line()}\n" for action in self.actions)

    def __str__(self) -> str:
        mode = "dry-run" if self.dry_run else "live"
        return (
            f"Cleanup ({mode}): {self.groups_found} duplicate groups, "
            f"{self.files_deleted} files, {self.folders_deleted} folders, "
            f"{self.records_skipped} skipped"
        )


class ApplicationConfig(BaseModel):
    """Configuration settings for a cleanup run."""

    group_key: str = Field(
        default=DEFAULT_GROUP_KEY, description="Provider id used to group duplicates"
    )
    folder_size_threshold: int = Field(
        default=DEFAULT_FOLDER_SIZE_THRESHOLD,
        ge=0,
        description="Directories smaller than this many bytes are removed with the file",
    )
    folder_size_policy: FolderSizePolicy = Field(
        default=FolderSizePolicy.AFTER,
        description="Measure the directory after or before the file is removed",
    )
    remove_empty_folders: bool = Field(
        default=True, description="Remove small directories left behind by deletions"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("group_key")
    @classmethod
    def validate_group_key(cls, v: str) -> str:
        """Ensure the grouping key is not blank."""
        v = v.strip()
        if not v:
            raise ValueError("group_key must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
