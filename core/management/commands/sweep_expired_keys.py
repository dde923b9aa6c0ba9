"""
Django management command to remove expired keys.

Runs one expiry sweep pass against the configured key file. Useful from
cron when the Celery beat schedule is not deployed.
"""

import asyncio
import logging

from django.core.management.base import BaseCommand, CommandError

from keys.infrastructure.factory import build_key_service

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to remove expired keys."""

    help = "Remove keys whose expiry is in the past"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - list expired keys without removing them",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        service = build_key_service()

        outcome = asyncio.run(service.sweep_expired(dry_run=dry_run))
        if not outcome.ok:
            raise CommandError(f"{outcome.kind.value}: {outcome.message}")

        result = outcome.payload
        self.stdout.write(f"Found {result.removed} expired key(s)")

        if dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for code in result.codes[:10]:  # Show first 10
                self.stdout.write(f"  - {code}")
            return

        if not result.removed:
            # pylint: disable=no-member
            self.stdout.write(self.style.SUCCESS("No expired keys to remove"))
            return

        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(f"Successfully removed {result.removed} expired key(s)")
        )
