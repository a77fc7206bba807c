# ==========================================
# apps/clients/models.py
# ==========================================

from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
import uuid

from .step_templates import FIRST_STEP, LAST_STEP


class ClientStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    COMPLETED = 'completed', 'Completed'
    ON_HOLD = 'on-hold', 'On Hold'
    CANCELLED = 'cancelled', 'Cancelled'


class StepStatus(models.TextChoices):
    # Overdue is never stored; see ClientStep.is_overdue.
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in-progress', 'In Progress'
    ON_HOLD = 'on-hold', 'On Hold'
    COMPLETED = 'completed', 'Completed'


OVERDUE = 'overdue'


class PaymentMode(models.TextChoices):
    # Stored inside step 1 data
    CASH = 'CASH', 'Cash'
    LOAN = 'Loan', 'Loan'
    DIGITAL = 'Digital Payment', 'Digital Payment'


class DueDateQuerySet(models.QuerySet):
    """Shared filters for records that carry a due date and a status."""

    def overdue(self, today=None):
        today = today or timezone.localdate()
        return self.filter(due_date__lt=today).exclude(status=StepStatus.COMPLETED)

    def with_status(self, status):
        """Filter by stored status, translating the derived ``overdue`` value."""
        if status == OVERDUE:
            return self.overdue()
        return self.filter(status=status)


class Client(models.Model):
    """A solar installation customer moving through the five-step workflow."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    mobile = models.CharField(max_length=20)
    address = models.TextField()
    google_maps_url = models.URLField(max_length=500, blank=True)
    comments = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=ClientStatus.choices,
        default=ClientStatus.ACTIVE
    )
    current_step = models.PositiveSmallIntegerField(
        default=FIRST_STEP,
        validators=[MinValueValidator(FIRST_STEP), MaxValueValidator(LAST_STEP)]
    )
    assigned_to = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='assigned_clients'
    )
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_clients'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clients'
        indexes = [
            models.Index(fields=['assigned_to', 'status'], name='clients_assigne_7a1f0c_idx'),
            models.Index(fields=['status', 'current_step'], name='clients_status_3b9d2e_idx'),
            models.Index(fields=['created_at'], name='clients_created_5c8e41_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.mobile})"


class ClientStep(models.Model):
    """One workflow step of a client. Exactly one per (client, step_number)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='steps')
    step_number = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(FIRST_STEP), MaxValueValidator(LAST_STEP)]
    )
    step_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=StepStatus.choices,
        default=StepStatus.PENDING
    )
    assigned_to = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_steps'
    )
    due_date = models.DateField()
    completed_at = models.DateTimeField(null=True, blank=True)
    estimated_duration = models.PositiveSmallIntegerField(help_text='Days')
    is_optional = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DueDateQuerySet.as_manager()

    class Meta:
        db_table = 'client_steps'
        constraints = [
            models.UniqueConstraint(
                fields=['client', 'step_number'],
                name='unique_step_number_per_client'
            ),
        ]
        indexes = [
            models.Index(fields=['assigned_to', 'status'], name='client_step_assigne_4e2a90_idx'),
            models.Index(fields=['status', 'due_date'], name='client_step_status_8d1b37_idx'),
        ]
        ordering = ['step_number']

    def __str__(self):
        return f"{self.client.name} - Step {self.step_number}: {self.step_name}"

    @property
    def is_overdue(self):
        return self.status != StepStatus.COMPLETED and self.due_date < timezone.localdate()


class ClientSubStep(models.Model):
    """Finer-grained task inside a step (dispatch and installation checkpoints)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    step = models.ForeignKey(ClientStep, on_delete=models.CASCADE, related_name='sub_steps')
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='sub_steps')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    sort_order = models.PositiveSmallIntegerField(default=0)
    is_required = models.BooleanField(default=True)
    status = models.CharField(
        max_length=20,
        choices=StepStatus.choices,
        default=StepStatus.PENDING
    )
    assigned_to = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_sub_steps'
    )
    due_date = models.DateField()
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DueDateQuerySet.as_manager()

    class Meta:
        db_table = 'client_sub_steps'
        ordering = ['sort_order']

    def __str__(self):
        return f"{self.step} / {self.name}"

    @property
    def is_overdue(self):
        return self.status != StepStatus.COMPLETED and self.due_date < timezone.localdate()


class StepData(models.Model):
    """
    Free-form form data captured for a client's step.

    ``data`` maps section names (personal_info, loan_status, ...) to their
    values; updates merge section by section.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='step_data')
    step_number = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(FIRST_STEP), MaxValueValidator(LAST_STEP)]
    )
    data = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='+'
    )
    updated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'client_step_data'
        constraints = [
            models.UniqueConstraint(
                fields=['client', 'step_number'],
                name='unique_step_data_per_client'
            ),
        ]

    def __str__(self):
        return f"{self.client.name} - Step {self.step_number} data"
