"""Exceptions for drop app.

Every failure of an upload, list or delete operation is a ``DropError``.
The view layer turns them into JSON responses using ``status_code``.
"""

from http import HTTPStatus


class DropError(Exception):
    """Base class for storage operation failures."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        """Initialize DropError.

        Args:
            message: Human readable reason shown to the client.
        """
        self.message = message
        super().__init__(message)


class InvalidInputError(DropError):
    """Raised when a filename or payload is rejected before any write."""

    status_code = HTTPStatus.BAD_REQUEST


class PayloadTooLargeError(InvalidInputError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        """Initialize PayloadTooLargeError.

        Args:
            size_bytes: Size of the rejected payload.
            max_bytes: Configured upper limit.
        """
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f'File is too large: {size_bytes} bytes '
            f'(limit: {max_bytes} bytes)',
        )


class UnsupportedMediaTypeError(InvalidInputError):
    """Raised when the upload's MIME type is not allowed."""

    status_code = HTTPStatus.UNSUPPORTED_MEDIA_TYPE

    def __init__(self, mime_type: str) -> None:
        """Initialize UnsupportedMediaTypeError.

        Args:
            mime_type: Rejected MIME type.
        """
        self.mime_type = mime_type
        super().__init__(f'File type {mime_type} is not allowed.')


class AlreadyExistsError(DropError):
    """Raised when the upload target name is already taken."""

    status_code = HTTPStatus.CONFLICT

    def __init__(self, filename: str, name: str) -> None:
        """Initialize AlreadyExistsError.

        Args:
            filename: Filename as sent by the client.
            name: Normalized name that collided.
        """
        self.filename = filename
        self.name = name
        super().__init__(f'The file {filename} already exists.')


class NotFoundError(DropError):
    """Raised when a delete target does not exist."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, name: str) -> None:
        """Initialize NotFoundError.

        Args:
            name: Name that was looked up.
        """
        self.name = name
        super().__init__('File not found.')


class WriteFailureError(DropError):
    """Raised when the filesystem refuses an upload or delete."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class StorageUnavailableError(DropError):
    """Raised when the storage directory cannot be read."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
