from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid

from apps.documents.models import StoredFile


class PaymentStatus(models.TextChoices):
    # Derived per client, never stored
    NO_PAYMENTS = 'no_payments', 'No Payments'
    FULLY_PAID = 'fully_paid', 'Fully Paid'
    OVERDUE = 'overdue', 'Overdue'
    PARTIAL = 'partial', 'Partial'


class ExpenseType(models.TextChoices):
    MATERIAL_COST = 'material_cost', 'Material Cost'
    CIVIL_WORK_COST = 'civil_work_cost', 'Civil Work Cost'
    LABOUR_COST = 'labour_cost', 'Labour Cost'
    AUTO_COST = 'auto_cost', 'Auto Cost'
    OTHER = 'other', 'Other'


class PaymentLog(models.Model):
    """Payment received from a client."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.CASCADE,
        related_name='payment_logs'
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    receiver = models.CharField(max_length=200)
    notes = models.TextField(blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_logs'
        indexes = [
            models.Index(fields=['client', 'timestamp'], name='payment_log_client_9a4c12_idx'),
        ]
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.client.name} - {self.amount} ({self.timestamp:%Y-%m-%d})"


class Expense(models.Model):
    """Cost incurred for a client's installation."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.CASCADE,
        related_name='expenses'
    )
    expense_type = models.CharField(max_length=30, choices=ExpenseType.choices)
    custom_expense_type = models.CharField(max_length=100, blank=True)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    description = models.TextField(blank=True)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='+'
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['client', 'created_at'], name='expenses_client_4d7e21_idx'),
            models.Index(fields=['expense_type'], name='expenses_expense_b2f9e0_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.client.name} - {self.type_label}: {self.amount}"

    @property
    def type_label(self):
        if self.expense_type == ExpenseType.OTHER and self.custom_expense_type:
            return self.custom_expense_type
        return self.get_expense_type_display()


class ExpenseDocument(StoredFile):
    """Receipt or invoice attached to an expense."""

    expense = models.ForeignKey(Expense, on_delete=models.CASCADE, related_name='documents')

    class Meta:
        db_table = 'expense_documents'
        ordering = ['uploaded_at']
