# ==========================================
# apps/calls/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone
import uuid

UNASSIGNED = 'UNASSIGNED'


class PhoneNumberStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    ASSIGNED = 'assigned', 'Assigned'
    IN_USE = 'in-use', 'In Use'
    COMPLETED = 'completed', 'Completed'


class CallStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in-progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'
    NO_ANSWER = 'no-answer', 'No Answer'


class CallOutcome(models.TextChoices):
    INTERESTED = 'interested', 'Interested'
    NOT_INTERESTED = 'not-interested', 'Not Interested'
    CALLBACK = 'callback', 'Callback'
    WRONG_NUMBER = 'wrong-number', 'Wrong Number'
    NO_ANSWER = 'no-answer', 'No Answer'


class FollowUpStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class PhoneNumber(models.Model):
    """
    Prospect number for calling campaigns, keyed by its normalized 10-digit form.

    assigned_to holds the caller's user id, or UNASSIGNED while the number
    sits in the available pool.
    """

    phone_number = models.CharField(max_length=10, primary_key=True)
    assigned_to = models.CharField(max_length=36, default=UNASSIGNED, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=PhoneNumberStatus.choices,
        default=PhoneNumberStatus.AVAILABLE
    )
    assigned_at = models.DateTimeField(null=True, blank=True)
    batch_id = models.UUIDField(null=True, blank=True)
    name = models.CharField(max_length=200, blank=True)
    address = models.TextField(blank=True)
    area_code = models.CharField(max_length=50)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'phone_numbers'
        indexes = [
            models.Index(fields=['status', 'area_code'], name='phone_numbe_status_1c7e52_idx'),
            models.Index(fields=['assigned_to', 'status'], name='phone_numbe_assigne_9b04d3_idx'),
            models.Index(fields=['batch_id'], name='phone_numbe_batch_i_5e2a18_idx'),
        ]
        ordering = ['created_at', 'phone_number']

    def __str__(self):
        return f"{self.phone_number} ({self.status})"


class Call(models.Model):
    """One call made by a caller to a phone number."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='calls'
    )
    # Plain value so call history survives deletion of the number
    phone_number = models.CharField(max_length=10, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=CallStatus.choices,
        default=CallStatus.PENDING
    )
    outcome = models.CharField(max_length=20, choices=CallOutcome.choices, blank=True)
    notes = models.TextField(blank=True)
    duration = models.PositiveIntegerField(null=True, blank=True, help_text='Seconds')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'calls'
        indexes = [
            models.Index(fields=['user', 'created_at'], name='calls_user_id_6d2f81_idx'),
            models.Index(fields=['status'], name='calls_status_0a9c47_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.phone_number} by {self.user} ({self.status})"


class FollowUp(models.Model):
    """Scheduled re-contact of a previously called number."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    call = models.ForeignKey(Call, on_delete=models.CASCADE, related_name='follow_ups')
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='follow_ups'
    )
    phone_number = models.CharField(max_length=10)
    scheduled_date = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=FollowUpStatus.choices,
        default=FollowUpStatus.PENDING
    )
    notes = models.TextField(blank=True)
    priority = models.PositiveSmallIntegerField(
        default=2,
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    reminder_sent = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'follow_ups'
        indexes = [
            models.Index(fields=['user', 'scheduled_date'], name='follow_ups_user_id_3f8b60_idx'),
            models.Index(fields=['status', 'scheduled_date'], name='follow_ups_status_7e1d29_idx'),
        ]
        ordering = ['scheduled_date']

    def __str__(self):
        return f"Follow-up {self.phone_number} on {self.scheduled_date:%Y-%m-%d}"

    @property
    def is_overdue(self):
        return self.status == FollowUpStatus.PENDING and self.scheduled_date < timezone.now()
