"""Django storage configuration for the local drop directory.

All stored files live flat inside a single directory. The default storage
backend is a FileSystemStorage subclass that adds exclusive creation and
staged writes.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

DROP_STORAGE_DIR = config(
    'DROP_STORAGE_DIR',
    default=str(BASE_DIR / 'uploads'),
)

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.drop.infrastructure.storage.DropStorage',
        'OPTIONS': {
            'location': DROP_STORAGE_DIR,
        },
    },
}
