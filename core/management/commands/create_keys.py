"""
Django management command to create activation keys.

Creates one key (optionally with a custom code) or a batch of generated
keys. Keys created here are administrative: the maximum-duration limit
does not apply.
"""

import asyncio
import logging

from django.core.management.base import BaseCommand, CommandError

from keys.application.commands.bulk_create_keys import BulkCreateKeysCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.infrastructure.factory import build_key_service

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to create activation keys."""

    help = "Create one or more activation keys"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--duration",
            type=int,
            required=True,
            help="Key lifetime, in --unit units",
        )
        parser.add_argument(
            "--unit",
            type=str,
            default="day",
            choices=["hour", "day", "week", "month"],
            help="Duration unit (default: day)",
        )
        parser.add_argument(
            "--devices",
            type=int,
            default=1,
            help="Number of devices the key may be bound to (default: 1)",
        )
        parser.add_argument(
            "--count",
            type=int,
            default=1,
            help="Number of keys to create (default: 1)",
        )
        parser.add_argument(
            "--prefix",
            type=str,
            default=None,
            help="Key type tag prepended to generated codes",
        )
        parser.add_argument(
            "--custom-code",
            type=str,
            default=None,
            help="Use this code instead of a generated one (only with --count 1)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        count = options["count"]
        custom_code = options["custom_code"]
        if custom_code and count != 1:
            raise CommandError("--custom-code can only be used with --count 1")

        service = build_key_service()

        if count == 1:
            outcome = asyncio.run(
                service.create_key(
                    CreateKeyCommand(
                        duration_value=options["duration"],
                        duration_unit=options["unit"],
                        allowed_devices=options["devices"],
                        custom_code=custom_code,
                        prefix=options["prefix"],
                        is_admin=True,
                    )
                )
            )
            if not outcome.ok:
                raise CommandError(f"{outcome.kind.value}: {outcome.message}")
            created = [outcome.payload]
            errors = []
        else:
            outcome = asyncio.run(
                service.bulk_create_keys(
                    BulkCreateKeysCommand(
                        count=count,
                        duration_value=options["duration"],
                        duration_unit=options["unit"],
                        allowed_devices=options["devices"],
                        prefix=options["prefix"],
                        is_admin=True,
                    )
                )
            )
            if not outcome.ok:
                raise CommandError(f"{outcome.kind.value}: {outcome.message}")
            created = outcome.payload.created
            errors = outcome.payload.errors

        for key in created:
            self.stdout.write(f"{key.code}  expires {key.expires_at.isoformat()}")
        for error in errors:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING(f"  item {error.index}: {error.message}"))

        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(f"Successfully created {len(created)} key(s)")
        )
