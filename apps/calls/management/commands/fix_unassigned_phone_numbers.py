"""
Management command to normalize empty phone number assignments.

Usage:
    python manage.py fix_unassigned_phone_numbers
    python manage.py fix_unassigned_phone_numbers --batch-size 50
    python manage.py fix_unassigned_phone_numbers --rollback

Rows whose assigned_to is an empty string are rewritten to UNASSIGNED.
Each row is only updated if it is still empty, so numbers assigned while
the command runs are left alone. Failures are counted and reported, not
retried; re-run the command once they are investigated.
"""

import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError
from django.utils import timezone

from apps.calls.models import UNASSIGNED, PhoneNumber, PhoneNumberStatus

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 5


class Command(BaseCommand):
    help = 'Replace empty assigned_to values on phone numbers with UNASSIGNED'

    def add_arguments(self, parser):
        parser.add_argument(
            '--rollback',
            action='store_true',
            help='Turn UNASSIGNED back into empty values on available numbers',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=25,
            help='Rows processed per batch (default: 25)',
        )

    def handle(self, *args, **options):
        batch_size = options['batch_size']
        if batch_size < 1:
            raise CommandError('--batch-size must be at least 1')

        if options['rollback']:
            source, target = UNASSIGNED, ''
            candidates = PhoneNumber.objects.filter(
                assigned_to=UNASSIGNED, status=PhoneNumberStatus.AVAILABLE
            )
            self.stdout.write(f'Rolling back {UNASSIGNED} to empty values on available numbers')
        else:
            source, target = '', UNASSIGNED
            candidates = PhoneNumber.objects.filter(assigned_to='')
            self.stdout.write(f'Replacing empty assigned_to values with {UNASSIGNED}')

        numbers = list(candidates.order_by('phone_number').values_list('phone_number', 'status'))
        found = len(numbers)
        self.stdout.write(f'Found {found} record(s) to update')
        if not found:
            self.stdout.write(self.style.SUCCESS('Nothing to do'))
            return

        for phone_number, status in numbers[:SAMPLE_SIZE]:
            self.stdout.write(f'  {phone_number} ({status})')
        if found > SAMPLE_SIZE:
            self.stdout.write(f'  ... and {found - SAMPLE_SIZE} more')

        updated, errors = self.rewrite(
            [phone_number for phone_number, _ in numbers],
            source=source,
            target=target,
            batch_size=batch_size,
        )

        remaining = candidates.count()
        now_unassigned = PhoneNumber.objects.filter(assigned_to=UNASSIGNED).count()

        self.stdout.write('')
        self.stdout.write('Summary')
        self.stdout.write(f'  Records found:       {found}')
        self.stdout.write(f'  Updated:             {updated}')
        self.stdout.write(f'  Errors:              {len(errors)}')
        self.stdout.write(f'  Remaining to update: {remaining}')
        self.stdout.write(f'  Now {UNASSIGNED}:     {now_unassigned}')

        for phone_number, message in errors:
            self.stderr.write(f'  {phone_number}: {message}')

        if errors or remaining:
            raise CommandError(
                f'{len(errors)} error(s), {remaining} record(s) left. '
                'Investigate and re-run the command.'
            )
        self.stdout.write(self.style.SUCCESS('All records updated'))

    def rewrite(self, phone_numbers, *, source, target, batch_size):
        """Conditionally update each number in batches; return (updated, errors)."""
        updated = 0
        errors = []
        total_batches = (len(phone_numbers) + batch_size - 1) // batch_size

        for index in range(total_batches):
            batch = phone_numbers[index * batch_size:(index + 1) * batch_size]
            for phone_number in batch:
                try:
                    rows = PhoneNumber.objects.filter(
                        phone_number=phone_number, assigned_to=source
                    ).update(assigned_to=target, updated_at=timezone.now())
                except DatabaseError as e:
                    logger.exception("Failed to update %s", phone_number)
                    errors.append((phone_number, str(e)))
                    continue
                if rows:
                    updated += 1
                else:
                    errors.append((phone_number, 'Record changed since it was read'))
            self.stdout.write(f'Batch {index + 1}/{total_batches} done')

        return updated, errors
