"""Data model for drop app.

Stored files are plain entries of the storage directory; nothing is kept
in a database. ``StoredFile`` is the value returned by every operation.
"""

from dataclasses import dataclass
from typing import final


@final
@dataclass(frozen=True, slots=True)
class StoredFile:
    """A file in the storage directory, keyed by its name."""

    name: str
    size: int

    def as_dict(self) -> dict[str, str | int]:
        """Return the JSON representation used by the listing."""
        return {'name': self.name, 'size': self.size}
