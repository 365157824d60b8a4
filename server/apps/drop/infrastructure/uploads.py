"""Multipart upload parsing for the drop endpoint.

Django's default parsing rewrites client filenames (drops directories and
non-printable characters, decodes HTML entities, truncates long names) and
buffers the whole body before a view can look at it. Upload names are
validated by the logic layer instead, and the size limit is enforced while
the body is still streaming in.
"""

import logging
from typing import Any, final, override

from django.core.files.uploadhandler import FileUploadHandler, StopUpload
from django.http import HttpRequest
from django.http.multipartparser import MultiPartParser
from django.utils.datastructures import MultiValueDict

logger = logging.getLogger(__name__)


@final
class DropMultiPartParser(MultiPartParser):
    """Multipart parser that passes filenames through untouched."""

    @override
    def sanitize_file_name(self, file_name: str) -> str | None:
        """Keep the client filename as sent.

        Args:
            file_name: Filename from the Content-Disposition header.

        Returns:
            The same filename, or None when it is empty.
        """
        return file_name or None


@final
class LimitedUploadHandler(FileUploadHandler):
    """Record original filenames and stop oversized uploads early.

    Must be first in the handler chain: it sees every chunk before it is
    buffered in memory or written to FILE_UPLOAD_TEMP_DIR.
    """

    def __init__(self, request: HttpRequest | None, max_bytes: int) -> None:
        """Initialize LimitedUploadHandler.

        Args:
            request: Request being parsed.
            max_bytes: Largest number of file bytes accepted.
        """
        super().__init__(request)
        self.max_bytes = max_bytes
        self.received_bytes = 0
        self.limit_exceeded = False
        self.file_names: dict[str, str] = {}

    @override
    def new_file(
        self,
        field_name: str,
        file_name: str,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Remember the filename exactly as the client sent it."""
        super().new_file(field_name, file_name, *args, **kwargs)
        self.file_names[field_name] = file_name

    @override
    def receive_data_chunk(self, raw_data: bytes, start: int) -> bytes:
        """Count file bytes and abort once the limit is passed.

        Raises:
            StopUpload: If the upload is larger than max_bytes.
        """
        self.received_bytes += len(raw_data)
        if self.received_bytes > self.max_bytes:
            logger.warning(
                'Aborting upload over %d bytes: %s',
                self.max_bytes,
                self.file_name,
            )
            self.limit_exceeded = True
            raise StopUpload(connection_reset=True)
        return raw_data

    @override
    def file_complete(self, file_size: int) -> None:
        """Leave building the uploaded file to the next handler."""
        return None


def parse_upload(
    request: HttpRequest,
    limiter: LimitedUploadHandler,
) -> MultiValueDict:
    """Parse a multipart request body with the limiting handler first.

    Args:
        request: Multipart request whose body has not been read yet.
        limiter: Handler enforcing the size limit.

    Returns:
        Uploaded files keyed by field name.

    Raises:
        MultiPartParserError: If the body is not valid multipart data.
        SuspiciousFileOperation: If Django refuses a filename.
    """
    handlers = [limiter, *request.upload_handlers]
    parser = DropMultiPartParser(
        request.META,
        request,
        handlers,
        request.encoding,
    )
    _post, files = parser.parse()
    return files
