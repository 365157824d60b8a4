"""Management command to clean up abandoned staged uploads."""

import logging
from typing import Any, final, override

from django.conf import settings
from django.core.files.storage import default_storage
from django.core.management.base import BaseCommand

logger = logging.getLogger(__name__)

_SECONDS_PER_MINUTE = 60


@final
class Command(BaseCommand):
    """Delete staged upload files left behind by interrupted uploads."""

    help = 'Delete staged uploads older than DROP_PARTIAL_MAX_AGE_MINUTES'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--max-age-minutes',
            type=int,
            default=None,
            help='Minimum age of purged files (default: from settings)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the purge command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        max_age_minutes = options['max_age_minutes']
        if max_age_minutes is None:
            max_age_minutes = settings.DROP_PARTIAL_MAX_AGE_MINUTES

        stale = default_storage.stale_partials(
            max_age_minutes * _SECONDS_PER_MINUTE,
        )
        self.stdout.write(
            f'Found {len(stale)} staged uploads older than '
            f'{max_age_minutes} minutes',
        )

        count = 0
        failed = 0
        for partial in stale:
            if dry_run:
                self.stdout.write(f'Would delete: {partial.name}')
                count += 1
                continue

            try:
                partial.unlink(missing_ok=True)
            except OSError as exc:
                self.stderr.write(f'Failed to delete {partial.name}: {exc}')
                logger.exception('Failed to purge staged upload: %s', partial)
                failed += 1
            else:
                logger.info('Purged staged upload: %s', partial)
                count += 1

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would purge {count} staged uploads'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Purged {count} staged uploads, {failed} failed',
                ),
            )
