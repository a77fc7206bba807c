# Generated manually for the calls app

import uuid
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PhoneNumber',
            fields=[
                ('phone_number', models.CharField(max_length=10, primary_key=True, serialize=False)),
                ('assigned_to', models.CharField(db_index=True, default='UNASSIGNED', max_length=36)),
                ('status', models.CharField(choices=[('available', 'Available'), ('assigned', 'Assigned'), ('in-use', 'In Use'), ('completed', 'Completed')], default='available', max_length=20)),
                ('assigned_at', models.DateTimeField(blank=True, null=True)),
                ('batch_id', models.UUIDField(blank=True, null=True)),
                ('name', models.CharField(blank=True, max_length=200)),
                ('address', models.TextField(blank=True)),
                ('area_code', models.CharField(max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'phone_numbers',
                'ordering': ['created_at', 'phone_number'],
                'indexes': [
                    models.Index(fields=['status', 'area_code'], name='phone_numbe_status_1c7e52_idx'),
                    models.Index(fields=['assigned_to', 'status'], name='phone_numbe_assigne_9b04d3_idx'),
                    models.Index(fields=['batch_id'], name='phone_numbe_batch_i_5e2a18_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Call',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('phone_number', models.CharField(db_index=True, max_length=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in-progress', 'In Progress'), ('completed', 'Completed'), ('failed', 'Failed'), ('no-answer', 'No Answer')], default='pending', max_length=20)),
                ('outcome', models.CharField(blank=True, choices=[('interested', 'Interested'), ('not-interested', 'Not Interested'), ('callback', 'Callback'), ('wrong-number', 'Wrong Number'), ('no-answer', 'No Answer')], max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('duration', models.PositiveIntegerField(blank=True, help_text='Seconds', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='calls', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'calls',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'created_at'], name='calls_user_id_6d2f81_idx'),
                    models.Index(fields=['status'], name='calls_status_0a9c47_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FollowUp',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('phone_number', models.CharField(max_length=10)),
                ('scheduled_date', models.DateTimeField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('priority', models.PositiveSmallIntegerField(default=2, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('reminder_sent', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('call', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='follow_ups', to='calls.call')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='follow_ups', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'follow_ups',
                'ordering': ['scheduled_date'],
                'indexes': [
                    models.Index(fields=['user', 'scheduled_date'], name='follow_ups_user_id_3f8b60_idx'),
                    models.Index(fields=['status', 'scheduled_date'], name='follow_ups_status_7e1d29_idx'),
                ],
            },
        ),
    ]
