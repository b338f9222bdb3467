"""Error kinds raised by the media and record layers.

Every error carries the HTTP status the routers translate it to:

    ValidationError  400  bad type, too large, missing file or field
    NotFoundError    404  referenced user does not exist
    StorageError     500  write/delete failure against the upload directory
    StoreError       500  record persistence failure (DuckDB)
"""


class MediaError(Exception):
    """Base class for all chatmedia failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MediaError):
    """Client sent an upload or body that is not acceptable."""

    status_code = 400


class NotFoundError(MediaError):
    """A record referenced by the request does not exist."""

    status_code = 404


class StorageError(MediaError):
    """Writing or removing a stored file failed."""


class StoreError(MediaError):
    """Reading or writing a record failed."""
