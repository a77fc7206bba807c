"""
Management command to seed sample clients.

Usage:
    python manage.py seed_client_data
    python manage.py seed_client_data --cleanup-only
    python manage.py seed_client_data --skip-cleanup

Previously seeded clients are removed first (with their steps, data,
documents and finances), then sample clients are created and advanced
through the workflow so their step states match their current step.
"""

from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import User, UserRole
from apps.clients.models import Client, StepStatus
from apps.clients.services import create_client, delete_client, update_step, update_sub_step

SEED_MARKER = 'Seeded sample client'

SAMPLE_CLIENTS = [
    {
        'name': 'Rajesh Kumar',
        'mobile': '9876543210',
        'address': '123 MG Road, Bangalore, Karnataka 560001',
        'current_step': 1,
    },
    {
        'name': 'Priya Sharma',
        'mobile': '9876543211',
        'address': '456 Park Street, Mumbai, Maharashtra 400001',
        'current_step': 2,
    },
    {
        'name': 'Amit Patel',
        'mobile': '9876543212',
        'address': '789 Civil Lines, Delhi, Delhi 110001',
        'current_step': 1,
    },
    {
        'name': 'Sunita Reddy',
        'mobile': '9876543213',
        'address': '321 Anna Nagar, Chennai, Tamil Nadu 600001',
        'current_step': 3,
    },
    {
        'name': 'Vikram Singh',
        'mobile': '9876543214',
        'address': '654 Sector 17, Chandigarh, Punjab 160017',
        'current_step': None,  # every step completed
    },
]


class Command(BaseCommand):
    help = 'Remove previously seeded sample clients and create fresh ones'

    def add_arguments(self, parser):
        parser.add_argument(
            '--cleanup-only',
            action='store_true',
            help='Only remove previously seeded clients',
        )
        parser.add_argument(
            '--skip-cleanup',
            action='store_true',
            help='Create sample clients without removing existing ones',
        )

    def handle(self, *args, **options):
        if options['cleanup_only'] and options['skip_cleanup']:
            raise CommandError('--cleanup-only and --skip-cleanup cannot be used together')

        admin = User.objects.filter(role=UserRole.ADMIN, is_active=True).order_by('created_at').first()
        if admin is None:
            raise CommandError('No active admin user found. Create one with createsuperuser first.')

        if not options['skip_cleanup']:
            removed = self.cleanup(admin)
            self.stdout.write(f'Removed {removed} previously seeded client(s)')

        if options['cleanup_only']:
            self.stdout.write(self.style.SUCCESS('Cleanup complete'))
            return

        users = list(User.objects.filter(is_active=True).order_by('created_at'))
        for index, sample in enumerate(SAMPLE_CLIENTS):
            client = self.create_sample(sample, assignee=users[index % len(users)], admin=admin)
            self.stdout.write(
                f'  Created {client.name}: step {client.current_step}, {client.status}'
            )

        self.stdout.write(self.style.SUCCESS(
            f'Seeded {len(SAMPLE_CLIENTS)} clients with their workflow steps'
        ))

    def cleanup(self, admin):
        """Delete every client carrying the seed marker."""
        client_ids = list(
            Client.objects.filter(comments=SEED_MARKER).values_list('id', flat=True)
        )
        for client_id in client_ids:
            delete_client(client_id=client_id, user=admin)
        return len(client_ids)

    def create_sample(self, sample, *, assignee, admin):
        client = create_client(
            name=sample['name'],
            mobile=sample['mobile'],
            address=sample['address'],
            comments=SEED_MARKER,
            assigned_to=assignee,
            created_by=admin,
        )

        steps = client.steps.order_by('step_number')
        for step in steps:
            if sample['current_step'] is not None and step.step_number >= sample['current_step']:
                if step.step_number == sample['current_step']:
                    update_step(step_id=step.id, user=admin, status=StepStatus.IN_PROGRESS)
                break
            for sub_step in step.sub_steps.all():
                update_sub_step(sub_step_id=sub_step.id, user=admin, status=StepStatus.COMPLETED)
            update_step(step_id=step.id, user=admin, status=StepStatus.COMPLETED)

        client.refresh_from_db()
        return client
