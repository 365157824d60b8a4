"""Upload validation settings."""

from decouple import Csv

from server.settings.components import config

# Largest accepted upload, 100 MiB by default
DROP_MAX_UPLOAD_BYTES = config(
    'DROP_MAX_UPLOAD_BYTES',
    cast=int,
    default=100 * 1024 * 1024,
)

# Empty list accepts every type
DROP_ALLOWED_MIME_TYPES = config(
    'DROP_ALLOWED_MIME_TYPES',
    cast=Csv(),
    default='image/jpeg,application/pdf',
)

# Staged uploads older than this are purged by purge_partial_uploads
DROP_PARTIAL_MAX_AGE_MINUTES = config(
    'DROP_PARTIAL_MAX_AGE_MINUTES',
    cast=int,
    default=60,
)
