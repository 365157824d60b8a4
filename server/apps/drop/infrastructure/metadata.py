"""Filename and metadata utilities for uploads."""

import mimetypes
import re
from typing import Final

from server.apps.drop.exceptions import InvalidInputError

# Longest name most filesystems accept for one path component
_MAX_NAME_BYTES: Final = 255

_WHITESPACE_RUN: Final = re.compile(r'\s+')
_FORBIDDEN_CHARACTERS: Final = frozenset(('/', '\\', '\x00'))
_RESERVED_NAMES: Final = frozenset(('.', '..'))


def normalize_filename(filename: str) -> str:
    """Collapse every run of whitespace into a single space.

    No other change is made, so normalizing twice gives the same name.

    Args:
        filename: Filename as sent by the client.

    Returns:
        Normalized filename (e.g., 'my   file.txt' -> 'my file.txt').
    """
    return _WHITESPACE_RUN.sub(' ', filename)


def validate_filename(
    name: str,
    reserved: frozenset[str] = frozenset(),
) -> None:
    """Validate a normalized name before it is turned into a path.

    The storage directory is a flat namespace, so anything that could
    address another directory is rejected.

    Args:
        name: Normalized filename.
        reserved: Extra names owned by the storage backend itself.

    Raises:
        InvalidInputError: If the name is empty, contains a path
            separator or NUL, is a relative directory reference,
            is reserved, or is too long.
    """
    if not name.strip():
        raise InvalidInputError('Filename cannot be empty.')

    if any(char in _FORBIDDEN_CHARACTERS for char in name):
        raise InvalidInputError(
            f'Filename {name!r} contains a forbidden character.',
        )

    if name in _RESERVED_NAMES or name in reserved:
        raise InvalidInputError(f'Filename {name!r} is reserved.')

    if len(name.encode('utf-8')) > _MAX_NAME_BYTES:
        raise InvalidInputError(
            f'Filename is too long (limit: {_MAX_NAME_BYTES} bytes).',
        )


def detect_mime_type(filename: str, declared: str | None = None) -> str:
    """Detect MIME type of an upload.

    Prefers the type declared by the client. Falls back to a guess from
    the filename extension using Python's built-in mimetypes module.

    Args:
        filename: Filename with extension.
        declared: Content type sent along with the payload, if any.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if declared:
        # Strip parameters such as '; charset=utf-8'
        return declared.split(';', 1)[0].strip().lower()

    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return 'application/octet-stream'
    return mime_type
