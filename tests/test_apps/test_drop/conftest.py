"""Shared fixtures for drop app tests."""

import pytest
from django.core.files.base import ContentFile

_STORAGE_BACKEND = 'server.apps.drop.infrastructure.storage.DropStorage'


@pytest.fixture
def storage_dir(settings, tmp_path):
    """Point the default storage at an empty per-test directory.

    Returns:
        Path of the storage directory.
    """
    location = tmp_path / 'uploads'
    location.mkdir()
    settings.STORAGES = {
        **settings.STORAGES,
        'default': {
            'BACKEND': _STORAGE_BACKEND,
            'OPTIONS': {'location': str(location)},
        },
    }
    return location


@pytest.fixture
def any_mime_type(settings):
    """Accept uploads of every MIME type."""
    settings.DROP_ALLOWED_MIME_TYPES = []


@pytest.fixture
def pdf_content():
    """Sample PDF payload for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'%PDF-1.4 test document', name='report.pdf')
