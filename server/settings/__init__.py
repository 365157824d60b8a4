"""Settings entry point.

Settings are split into components and composed with django-split-settings.
Values that differ between environments are read from the environment
(or a ``.env`` file) through python-decouple.
"""

from split_settings.tools import include

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/drop.py',
)
