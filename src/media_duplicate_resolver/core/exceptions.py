"""Exceptions for media duplicate resolver."""


class LibraryIndexError(Exception):
    """Base exception for failures talking to the media library index."""

    pass


class LibraryUnavailableError(LibraryIndexError):
    """Raised when the library server cannot be reached or rejects the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidLibraryDataError(LibraryIndexError):
    """Raised when the library returns data that cannot be parsed."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source
