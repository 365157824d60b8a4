"""Storage backend for the local drop directory."""

import errno
import logging
import os
import stat
import tempfile
import time
from collections.abc import Iterator
from contextlib import suppress
from operator import attrgetter
from pathlib import Path
from typing import Any, Final, final

from django.core.files.storage import FileSystemStorage

from server.apps.drop.models import StoredFile

logger = logging.getLogger(__name__)

# Hidden subdirectory holding uploads that are still being written
STAGING_DIR_NAME: Final = '.partial'

_PARTIAL_SUFFIX: Final = '.part'
_CHUNK_SIZE: Final = 64 * 1024
_DEFAULT_FILE_MODE: Final = 0o644


@final
class DropStorage(FileSystemStorage):
    """Flat, single-directory storage for dropped files.

    Extends Django's FileSystemStorage with:
    - Exclusive creation: a name is written at most once, never overwritten
    - Staged writes: bytes land in a hidden staging directory and are
      linked into place only when complete
    - Sized, name-ordered listing of regular files
    """

    @property
    def staging_location(self) -> Path:
        """Directory where in-flight uploads are written."""
        return Path(self.location) / STAGING_DIR_NAME

    def create(self, name: str, content: Any) -> int:
        """Write content under name unless the name is already taken.

        The payload is written to a temporary file in the staging directory,
        flushed to disk, then hard-linked to its final name. Linking fails
        atomically when the target exists, so concurrent writers of one name
        get exactly one winner and nobody observes a truncated file.

        Args:
            name: Validated file name inside the storage directory.
            content: Django File or any binary file-like object.

        Returns:
            Number of bytes stored.

        Raises:
            FileExistsError: If a file with this name already exists.
            OSError: If writing or linking fails.
        """
        target = self.path(name)
        os.makedirs(self.staging_location, exist_ok=True)
        fd, partial_path = tempfile.mkstemp(
            dir=self.staging_location,
            suffix=_PARTIAL_SUFFIX,
        )
        try:
            logger.debug('Staging upload %s at %s', name, partial_path)
            with os.fdopen(fd, 'wb') as partial:
                written = 0
                for chunk in _iter_chunks(content):
                    partial.write(chunk)
                    written += len(chunk)
                partial.flush()
                os.fsync(partial.fileno())
            os.chmod(
                partial_path,
                self.file_permissions_mode or _DEFAULT_FILE_MODE,
            )
            os.link(partial_path, target)
        except FileExistsError:
            logger.info('Refusing to overwrite existing file: %s', name)
            raise
        except OSError:
            logger.exception('Failed to write file to storage: %s', name)
            raise
        finally:
            with suppress(FileNotFoundError):
                os.unlink(partial_path)

        logger.info('Stored file: %s (%d bytes)', name, written)
        return written

    def remove(self, name: str) -> None:
        """Remove a regular file in a single unlink call.

        Only entries that the listing reports are removable, so a
        directory or symlink under this name counts as missing.

        Args:
            name: Validated file name inside the storage directory.

        Raises:
            FileNotFoundError: If no regular file has this name.
            OSError: If the filesystem refuses the removal.
        """
        target = self.path(name)
        if not stat.S_ISREG(os.lstat(target).st_mode):
            raise FileNotFoundError(errno.ENOENT, 'Not a stored file', target)

        try:
            os.remove(target)
        except FileNotFoundError:
            raise
        except OSError:
            logger.exception('Failed to delete file from storage: %s', name)
            raise

        logger.info('Deleted file: %s', name)

    def list_entries(self) -> list[StoredFile]:
        """List regular files directly inside the storage directory.

        Directories (the staging directory included) and symlinks are
        skipped. A file removed while the directory is being read is
        treated as absent.

        Returns:
            Stored files sorted by name.

        Raises:
            OSError: If the storage directory cannot be opened.
        """
        entries = []
        try:
            with os.scandir(self.location) as iterator:
                for entry in iterator:
                    stored = _stored_file_from_entry(entry)
                    if stored is not None:
                        entries.append(stored)
        except OSError:
            logger.exception(
                'Failed to read storage directory: %s',
                self.location,
            )
            raise

        return sorted(entries, key=attrgetter('name'))

    def stale_partials(self, max_age_seconds: float) -> list[Path]:
        """Find staged uploads older than the given age.

        Args:
            max_age_seconds: Minimum age, based on modification time.

        Returns:
            Paths of abandoned staging files, oldest first.
        """
        if not self.staging_location.is_dir():
            return []

        cutoff = time.time() - max_age_seconds
        stale = []
        for partial in self.staging_location.glob(f'*{_PARTIAL_SUFFIX}'):
            try:
                modified_at = partial.stat().st_mtime
            except FileNotFoundError:
                continue
            if modified_at <= cutoff:
                stale.append((modified_at, partial))

        return [partial for _, partial in sorted(stale)]


def _stored_file_from_entry(entry: os.DirEntry[str]) -> StoredFile | None:
    try:
        if not entry.is_file(follow_symlinks=False):
            return None
        size = entry.stat(follow_symlinks=False).st_size
    except FileNotFoundError:
        logger.debug('File disappeared during listing: %s', entry.name)
        return None
    return StoredFile(name=entry.name, size=size)


def _iter_chunks(content: Any) -> Iterator[bytes]:
    if hasattr(content, 'chunks'):
        yield from content.chunks(_CHUNK_SIZE)
        return

    if hasattr(content, 'seek'):
        content.seek(0)
    yield from iter(lambda: content.read(_CHUNK_SIZE), b'')
