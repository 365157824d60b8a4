"""Business logic for file operations."""

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import default_storage

from server.apps.drop.exceptions import (
    AlreadyExistsError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StorageUnavailableError,
    UnsupportedMediaTypeError,
    WriteFailureError,
)
from server.apps.drop.infrastructure.metadata import (
    detect_mime_type,
    normalize_filename,
    validate_filename,
)
from server.apps.drop.infrastructure.storage import STAGING_DIR_NAME
from server.apps.drop.models import StoredFile

if TYPE_CHECKING:
    from server.apps.drop.infrastructure.storage import DropStorage

logger = logging.getLogger(__name__)

_RESERVED_NAMES = frozenset((STAGING_DIR_NAME,))


def _get_storage() -> 'DropStorage':
    """Get the configured default storage backend.

    Returns:
        DropStorage instance rooted at the storage directory.
    """
    return default_storage  # type: ignore[return-value]


def resolve_name(filename: str) -> str:
    """Turn a client filename into the name used on disk.

    Upload and delete both go through here, so a file uploaded as
    'a  b.txt' is stored and deleted as 'a b.txt'.

    Args:
        filename: Filename as sent by the client.

    Returns:
        Normalized, validated name.

    Raises:
        InvalidInputError: If the name cannot be used as a stored file name.
    """
    name = normalize_filename(filename)
    try:
        validate_filename(name, reserved=_RESERVED_NAMES)
    except InvalidInputError:
        logger.warning('Rejected filename: %r', filename)
        raise
    return name


def upload_file(filename: str, file_obj: Any) -> StoredFile:
    """Store an uploaded file under its normalized name.

    The payload is validated (size, MIME type) before anything touches the
    disk. Existing files are never overwritten.

    Args:
        filename: Original filename declared by the client.
        file_obj: Uploaded content (Django File or binary file-like object).

    Returns:
        The stored file with its byte size.

    Raises:
        InvalidInputError: If the name, size or MIME type is rejected.
        AlreadyExistsError: If a file with the normalized name exists.
        WriteFailureError: If the filesystem refuses the write.
    """
    name = resolve_name(filename)
    _check_size(name, file_obj)
    _check_mime_type(name, file_obj)

    storage = _get_storage()
    try:
        size = storage.create(name, file_obj)
    except FileExistsError as error:
        raise AlreadyExistsError(filename, name) from error
    except SuspiciousFileOperation as error:
        raise InvalidInputError(
            f'Filename {name!r} is not allowed.',
        ) from error
    except OSError as error:
        raise WriteFailureError(
            f'Could not store the file {filename}: {error.strerror or error}',
        ) from error

    return StoredFile(name=name, size=size)


def list_files() -> list[StoredFile]:
    """List files in the storage directory.

    Returns:
        Stored files sorted by name; empty when the directory is empty.

    Raises:
        StorageUnavailableError: If the storage directory is missing or
            cannot be opened.
    """
    storage = _get_storage()
    try:
        return storage.list_entries()
    except OSError as error:
        raise StorageUnavailableError(
            'The storage directory is not available.',
        ) from error


def delete_file(filename: str) -> None:
    """Delete a stored file.

    Args:
        filename: Filename as sent by the client; normalized like uploads.

    Raises:
        InvalidInputError: If the name cannot be a stored file name.
        NotFoundError: If no such file exists.
        WriteFailureError: If the filesystem refuses the removal.
    """
    name = resolve_name(filename)
    storage = _get_storage()
    try:
        storage.remove(name)
    except FileNotFoundError as error:
        # Also the outcome of losing a race against another deleter
        logger.info('Delete target not found: %s', name)
        raise NotFoundError(name) from error
    except SuspiciousFileOperation as error:
        raise InvalidInputError(
            f'Filename {name!r} is not allowed.',
        ) from error
    except OSError as error:
        raise WriteFailureError(
            f'Could not delete the file {filename}: {error.strerror or error}',
        ) from error


def _check_size(name: str, file_obj: Any) -> None:
    max_bytes = settings.DROP_MAX_UPLOAD_BYTES
    size_bytes = _get_file_size(file_obj)
    if size_bytes > max_bytes:
        logger.warning(
            'Upload too large: %s (%d bytes, limit %d)',
            name,
            size_bytes,
            max_bytes,
        )
        raise PayloadTooLargeError(size_bytes, max_bytes)


def _check_mime_type(name: str, file_obj: Any) -> None:
    allowed = settings.DROP_ALLOWED_MIME_TYPES
    if not allowed:
        return

    mime_type = detect_mime_type(name, getattr(file_obj, 'content_type', None))
    if mime_type not in allowed:
        logger.warning('Upload type not allowed: %s (%s)', name, mime_type)
        raise UnsupportedMediaTypeError(mime_type)


def _get_file_size(file_obj: Any) -> int:
    """Get file size from file object.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.
    """
    if hasattr(file_obj, 'size'):
        return file_obj.size
    file_size = len(file_obj.read())
    file_obj.seek(0)
    return file_size
