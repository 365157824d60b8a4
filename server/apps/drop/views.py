"""HTTP views for drop app.

A single endpoint serves the drop zone client:

- ``GET``: list stored files
- ``POST`` multipart with a ``file`` field: upload
- ``POST`` JSON ``{"delete": "<filename>"}``: delete
"""

import json
import logging
from http import HTTPStatus
from typing import Any

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.http import HttpRequest, JsonResponse
from django.http.multipartparser import MultiPartParserError
from django.utils.datastructures import MultiValueDict
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from server.apps.drop.exceptions import (
    DropError,
    InvalidInputError,
    PayloadTooLargeError,
)
from server.apps.drop.infrastructure.uploads import (
    LimitedUploadHandler,
    parse_upload,
)
from server.apps.drop.logic.file_operations import (
    delete_file,
    list_files,
    upload_file,
)
from server.apps.drop.models import StoredFile

logger = logging.getLogger(__name__)

_UPLOAD_FIELD = 'file'
_DELETE_KEY = 'delete'
_MULTIPART = 'multipart/form-data'

# Room for boundaries and part headers around the uploaded file
_MULTIPART_OVERHEAD_BYTES = 64 * 1024


@csrf_exempt
@require_http_methods(['GET', 'POST'])
def files_endpoint(request: HttpRequest) -> JsonResponse:
    """Dispatch a drop zone request to list, upload or delete."""
    if request.method == 'GET':
        return _list()

    if request.content_type == _MULTIPART:
        return _upload(request)

    try:
        payload = _decode_json(request)
    except InvalidInputError as error:
        return _failure(error, key='error')

    if isinstance(payload, dict) and _DELETE_KEY in payload:
        return _delete(payload[_DELETE_KEY])

    return _failure(
        InvalidInputError('Expected a file upload or a delete request.'),
        key='error',
    )


def _list() -> JsonResponse:
    try:
        stored_files = list_files()
    except DropError as error:
        return _failure(error, key='error')

    return JsonResponse(
        [stored.as_dict() for stored in stored_files],
        safe=False,
    )


def _upload(request: HttpRequest) -> JsonResponse:
    """Receive a multipart upload without buffering oversized bodies.

    Filenames are taken as the client sent them, before Django's own
    sanitizing, so normalization and validation see the real name.
    """
    max_bytes = settings.DROP_MAX_UPLOAD_BYTES
    content_length = _content_length(request)
    if content_length > max_bytes + _MULTIPART_OVERHEAD_BYTES:
        logger.warning('Rejecting upload body of %d bytes', content_length)
        return _failure(
            PayloadTooLargeError(content_length, max_bytes),
            key='error',
        )

    limiter = LimitedUploadHandler(request, max_bytes)
    try:
        files = parse_upload(request, limiter)
    except SuspiciousFileOperation as error:
        logger.warning('Upload filename refused by parser: %s', error)
        return _failure(
            InvalidInputError('Filename is not allowed.'),
            key='error',
        )
    except MultiPartParserError as error:
        logger.warning('Malformed multipart body: %s', error)
        return _failure(
            InvalidInputError('Malformed upload.'),
            key='error',
        )

    try:
        stored = _store_upload(limiter, files)
    except DropError as error:
        return _failure(error, key='error')
    finally:
        _close_files(files)

    return JsonResponse(
        {'success': True, 'size': stored.size, 'name': stored.name},
        status=HTTPStatus.CREATED,
    )


def _store_upload(
    limiter: LimitedUploadHandler,
    files: MultiValueDict,
) -> StoredFile:
    if limiter.limit_exceeded:
        raise PayloadTooLargeError(limiter.received_bytes, limiter.max_bytes)
    if _UPLOAD_FIELD not in files:
        raise InvalidInputError('No file was uploaded.')

    return upload_file(
        limiter.file_names[_UPLOAD_FIELD],
        files[_UPLOAD_FIELD],
    )


def _content_length(request: HttpRequest) -> int:
    try:
        return int(request.META.get('CONTENT_LENGTH') or 0)
    except ValueError:
        return 0


def _close_files(files: MultiValueDict) -> None:
    for _field_name, uploaded_files in files.lists():
        for uploaded in uploaded_files:
            uploaded.close()


def _delete(filename: Any) -> JsonResponse:
    if not isinstance(filename, str):
        return _failure(
            InvalidInputError('Filename must be a string.'),
            key='message',
        )

    try:
        delete_file(filename)
    except DropError as error:
        return _failure(error, key='message')

    return JsonResponse({'success': True})


def _decode_json(request: HttpRequest) -> Any:
    try:
        return json.loads(request.body or b'null')
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        logger.warning('Malformed JSON body: %s', error)
        raise InvalidInputError('Request body is not valid JSON.') from error


def _failure(error: DropError, key: str) -> JsonResponse:
    """Encode a failed operation.

    Uploads and listings report the reason under ``error``, deletions
    under ``message``.
    """
    return JsonResponse(
        {'success': False, key: error.message},
        status=error.status_code,
    )
