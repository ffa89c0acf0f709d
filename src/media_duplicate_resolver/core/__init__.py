"""Core functionality for media duplicate resolver."""

from .exceptions import InvalidLibraryDataError, LibraryIndexError, LibraryUnavailableError
from .executor import ActionExecutor
from .models import (
    DEFAULT_FOLDER_SIZE_THRESHOLD,
    DEFAULT_GROUP_KEY,
    ActionKind,
    ApplicationConfig,
    CleanupAction,
    CleanupReport,
    DuplicateGroup,
    FolderSizePolicy,
    MediaRecord,
    QualityMetric,
    RankedRecord,
)
from .quality import QualitySource, max_bitrate, max_height, probe_file_size
from .resolver import DuplicateResolver, resolve
from .service import DuplicateCleanupService

__all__ = [
    "DEFAULT_FOLDER_SIZE_THRESHOLD",
    "DEFAULT_GROUP_KEY",
    "ActionExecutor",
    "ActionKind",
    "ApplicationConfig",
    "CleanupAction",
    "CleanupReport",
    "DuplicateCleanupService",
    "DuplicateGroup",
    "DuplicateResolver",
    "FolderSizePolicy",
    "InvalidLibraryDataError",
    "LibraryIndexError",
    "LibraryUnavailableError",
    "MediaRecord",
    "QualityMetric",
    "QualitySource",
    "RankedRecord",
    "max_bitrate",
    "max_height",
    "probe_file_size",
    "resolve",
]
