"""Tests for the drop zone HTTP endpoint."""

from http import HTTPStatus

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse


@pytest.fixture
def url():
    """URL of the files endpoint.

    Returns:
        Reversed URL string.
    """
    return reverse('drop:files')


@pytest.fixture
def upload_temp_dir(settings, tmp_path):
    """Send every multipart upload through an empty temp directory.

    Returns:
        Path of FILE_UPLOAD_TEMP_DIR.
    """
    temp_dir = tmp_path / 'upload-tmp'
    temp_dir.mkdir()
    settings.FILE_UPLOAD_TEMP_DIR = str(temp_dir)
    settings.FILE_UPLOAD_MAX_MEMORY_SIZE = 0
    return temp_dir


def _pdf(name='report.pdf', content=b'%PDF-1.4 body'):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


class TestList:
    """Tests for GET requests."""

    def test_empty(self, client, storage_dir, url):
        """Test an empty directory returns an empty JSON array."""
        response = client.get(url)

        assert response.status_code == HTTPStatus.OK
        assert response.json() == []

    def test_lists_files(self, client, storage_dir, url):
        """Test files are listed with names and sizes, sorted by name."""
        (storage_dir / 'b.pdf').write_bytes(b'12345')
        (storage_dir / 'a.jpg').write_bytes(b'123')

        response = client.get(url)

        assert response.json() == [
            {'name': 'a.jpg', 'size': 3},
            {'name': 'b.pdf', 'size': 5},
        ]

    def test_storage_unavailable(self, client, storage_dir, url):
        """Test a missing directory yields a structured JSON error."""
        storage_dir.rmdir()

        response = client.get(url)

        assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
        assert response.json() == {
            'success': False,
            'error': 'The storage directory is not available.',
        }


class TestUpload:
    """Tests for multipart POST requests."""

    def test_success(self, client, storage_dir, url):
        """Test upload returns the stored size and appears in the list."""
        response = client.post(url, {'file': _pdf()})

        assert response.status_code == HTTPStatus.CREATED
        assert response.json() == {
            'success': True,
            'size': 13,
            'name': 'report.pdf',
        }
        assert client.get(url).json() == [{'name': 'report.pdf', 'size': 13}]

    def test_normalized_name(self, client, storage_dir, url):
        """Test the stored name has whitespace runs collapsed."""
        response = client.post(url, {'file': _pdf('my   file.pdf')})

        assert response.json()['name'] == 'my file.pdf'
        assert (storage_dir / 'my file.pdf').is_file()

    def test_already_exists(self, client, storage_dir, url):
        """Test a second upload of the same name is refused."""
        client.post(url, {'file': _pdf(content=b'first')})

        response = client.post(url, {'file': _pdf(content=b'second')})

        assert response.status_code == HTTPStatus.CONFLICT
        assert response.json() == {
            'success': False,
            'error': 'The file report.pdf already exists.',
        }
        assert (storage_dir / 'report.pdf').read_bytes() == b'first'

    def test_unsupported_type(self, client, storage_dir, url):
        """Test the server enforces the MIME allow-list."""
        upload = SimpleUploadedFile(
            'page.html',
            b'<html></html>',
            content_type='text/html',
        )

        response = client.post(url, {'file': upload})

        assert response.status_code == HTTPStatus.UNSUPPORTED_MEDIA_TYPE
        assert response.json()['success'] is False
        assert client.get(url).json() == []

    def test_too_large(
        self, client, storage_dir, settings, upload_temp_dir, url,
    ):
        """Test the upload is cut off while streaming in."""
        settings.DROP_MAX_UPLOAD_BYTES = 4

        response = client.post(url, {'file': _pdf()})

        assert response.status_code == HTTPStatus.REQUEST_ENTITY_TOO_LARGE
        assert 'too large' in response.json()['error']
        assert not list(upload_temp_dir.iterdir())
        assert client.get(url).json() == []

    def test_body_too_large(
        self, client, storage_dir, settings, upload_temp_dir, url,
    ):
        """Test an oversized body is refused before it is read."""
        settings.DROP_MAX_UPLOAD_BYTES = 1024
        payload = b'x' * (256 * 1024)

        response = client.post(url, {'file': _pdf(content=payload)})

        assert response.status_code == HTTPStatus.REQUEST_ENTITY_TOO_LARGE
        assert response.json()['success'] is False
        assert not list(upload_temp_dir.iterdir())
        assert client.get(url).json() == []

    def test_at_size_limit(self, client, storage_dir, settings, url):
        """Test a file exactly at the limit fits with its multipart framing."""
        settings.DROP_MAX_UPLOAD_BYTES = 13

        response = client.post(url, {'file': _pdf()})

        assert response.status_code == HTTPStatus.CREATED
        assert response.json()['size'] == 13

    def test_tab_in_name(self, client, storage_dir, url):
        """Test a tab in the filename collapses to a single space."""
        response = client.post(url, {'file': _pdf('my\tfile.pdf')})

        assert response.status_code == HTTPStatus.CREATED
        assert response.json()['name'] == 'my file.pdf'
        assert (storage_dir / 'my file.pdf').is_file()

    def test_name_kept_verbatim(self, client, storage_dir, url):
        """Test HTML entities in the filename are not decoded."""
        response = client.post(url, {'file': _pdf('a&amp;b.pdf')})

        assert response.json()['name'] == 'a&amp;b.pdf'
        assert (storage_dir / 'a&amp;b.pdf').is_file()

    def test_name_too_long(self, client, storage_dir, url):
        """Test names over 255 bytes are rejected, not truncated."""
        long_name = '{0}.pdf'.format('a' * 296)

        response = client.post(url, {'file': _pdf(long_name)})

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert 'too long' in response.json()['error']
        assert client.get(url).json() == []

    def test_missing_file_field(self, client, storage_dir, url):
        """Test a multipart body without a file is invalid."""
        response = client.post(url, {'other': 'value'})

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json() == {
            'success': False,
            'error': 'No file was uploaded.',
        }


class TestDelete:
    """Tests for JSON POST requests."""

    def test_success(self, client, storage_dir, url):
        """Test deleting an existing file."""
        (storage_dir / 'report.pdf').write_bytes(b'data')

        response = client.post(
            url,
            {'delete': 'report.pdf'},
            content_type='application/json',
        )

        assert response.status_code == HTTPStatus.OK
        assert response.json() == {'success': True}
        assert client.get(url).json() == []

    def test_not_found(self, client, storage_dir, url):
        """Test deleting a missing file is a structured failure."""
        response = client.post(
            url,
            {'delete': 'missing.pdf'},
            content_type='application/json',
        )

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.json() == {
            'success': False,
            'message': 'File not found.',
        }

    def test_traversal(self, client, storage_dir, url):
        """Test delete requests cannot address other directories."""
        response = client.post(
            url,
            {'delete': '../settings.py'},
            content_type='application/json',
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()['success'] is False
        assert 'message' in response.json()

    def test_non_string_name(self, client, storage_dir, url):
        """Test a non-string filename is rejected."""
        response = client.post(
            url,
            {'delete': 42},
            content_type='application/json',
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json() == {
            'success': False,
            'message': 'Filename must be a string.',
        }


class TestInvalidRequests:
    """Tests for requests that match no operation."""

    def test_malformed_json(self, client, storage_dir, url):
        """Test a body that is not JSON is rejected."""
        response = client.post(
            url,
            'not json',
            content_type='application/json',
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()['error'] == 'Request body is not valid JSON.'

    def test_unknown_payload(self, client, storage_dir, url):
        """Test JSON without a delete key is rejected."""
        response = client.post(
            url,
            {'rename': 'a.pdf'},
            content_type='application/json',
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()['success'] is False

    @pytest.mark.parametrize('method', ['put', 'patch', 'delete'])
    def test_method_not_allowed(self, client, storage_dir, url, method):
        """Test only GET and POST are served."""
        response = getattr(client, method)(url)

        assert response.status_code == HTTPStatus.METHOD_NOT_ALLOWED
