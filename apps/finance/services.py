"""
Finance Services Module
=======================

Business logic for client payments, expenses and the financial overview.

Payment logs are admin-only. Expenses can be recorded by anyone with access
to the client; only admins delete them.

The aggregator derives, per client:

    outstanding_balance = price_finalized - sum(payments)
    net_profit_loss     = sum(payments) - sum(expenses)

where price_finalized is read from the step 1 pricing details. Nothing is
stored: every overview is recomputed from the current rows, so repeated
reads give identical results.

Example:
    Overview of one client::

        from apps.finance.services import compute_overview

        overview = compute_overview(client_id=client.id, user=admin)
        overview.outstanding_balance   # Decimal('30000.00')
        overview.payment_status        # 'partial'
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import Count, QuerySet, Sum
from django.utils import timezone

from apps.accounts.models import User
from apps.clients.models import Client, StepData
from apps.clients.permissions import accessible_clients, get_accessible_client, user_can_access_client
from apps.clients.exceptions import ClientAccessDeniedError
from apps.documents.services import (
    delete_stored_file,
    discard_after_commit,
    discard_stored_files,
    signed_url,
    store_file,
    validate_uploads,
)
from .exceptions import (
    ExpenseDocumentNotFoundError,
    ExpenseNotFoundError,
    FinanceAccessDeniedError,
    InvalidDateRangeError,
    InvalidExpenseError,
    PaymentNotFoundError,
)
from .models import Expense, ExpenseDocument, ExpenseType, PaymentLog, PaymentStatus

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def _require_admin(user: User, action: str) -> None:
    if not user.is_admin:
        raise FinanceAccessDeniedError(f"Only admins can {action}")


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeError("End date must not be before start date")


# ------------------------------------------
# Payment logs
# ------------------------------------------

def add_payment(
    *,
    client_id: UUID,
    user: User,
    amount: Decimal,
    receiver: str,
    notes: str = '',
    timestamp=None
) -> PaymentLog:
    """
    Record a payment received from a client (admin only).

    Raises:
        FinanceAccessDeniedError: If user is not an admin
        ClientNotFoundError: If client doesn't exist
    """
    _require_admin(user, 'record payments')
    client = get_accessible_client(client_id=client_id, user=user)

    payment = PaymentLog.objects.create(
        client=client,
        amount=amount,
        receiver=receiver,
        notes=notes,
        timestamp=timestamp or timezone.now(),
        created_by=user,
    )
    logger.info("Payment %s of %s recorded for client %s", payment.id, amount, client.id)
    return payment


def _get_payment(payment_id: UUID, *, for_update: bool = False) -> PaymentLog:
    queryset = PaymentLog.objects.select_related('client')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=payment_id)
    except PaymentLog.DoesNotExist:
        raise PaymentNotFoundError(f"Payment {payment_id} not found")


@transaction.atomic
def update_payment(*, payment_id: UUID, user: User, **changes) -> PaymentLog:
    """
    Update a payment log entry (admin only).

    Args:
        payment_id: Payment to update
        user: Acting user
        **changes: amount, receiver, notes, timestamp

    Raises:
        FinanceAccessDeniedError: If user is not an admin
        PaymentNotFoundError: If payment doesn't exist
    """
    _require_admin(user, 'edit payments')
    payment = _get_payment(payment_id, for_update=True)

    for attr, value in changes.items():
        setattr(payment, attr, value)
    payment.save()

    logger.info("Payment %s updated: %s", payment.id, sorted(changes))
    return payment


def delete_payment(*, payment_id: UUID, user: User) -> None:
    """Delete a payment log entry (admin only)."""
    _require_admin(user, 'delete payments')
    payment = _get_payment(payment_id)
    payment.delete()
    logger.info("Payment %s of client %s deleted", payment_id, payment.client_id)


def list_payments(*, client_id: UUID, user: User) -> QuerySet:
    """List a client's payments, newest first (admin only)."""
    _require_admin(user, 'view payments')
    client = get_accessible_client(client_id=client_id, user=user)
    return PaymentLog.objects.filter(client=client).order_by('-timestamp')


# ------------------------------------------
# Expenses
# ------------------------------------------

def _validate_expense_type(expense_type: str, custom_expense_type: str) -> None:
    if expense_type == ExpenseType.OTHER and not (custom_expense_type or '').strip():
        raise InvalidExpenseError("Custom expense type is required when type is 'other'")


def add_expense(
    *,
    client_id: UUID,
    user: User,
    expense_type: str,
    amount: Decimal,
    custom_expense_type: str = '',
    description: str = ''
) -> Expense:
    """
    Record an expense for a client.

    Raises:
        InvalidExpenseError: If type is 'other' without a custom type
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    _validate_expense_type(expense_type, custom_expense_type)
    client = get_accessible_client(client_id=client_id, user=user)

    expense = Expense.objects.create(
        client=client,
        expense_type=expense_type,
        custom_expense_type=(custom_expense_type or '').strip(),
        amount=amount,
        description=(description or '').strip(),
        created_by=user,
    )
    logger.info("Expense %s (%s, %s) recorded for client %s", expense.id, expense_type, amount, client.id)
    return expense


def get_expense(*, expense_id: UUID, user: User, for_update: bool = False) -> Expense:
    """
    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ClientAccessDeniedError: If user has no access to its client
    """
    queryset = Expense.objects.select_related('client')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        expense = queryset.get(id=expense_id)
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense {expense_id} not found")

    if not user_can_access_client(user, expense.client):
        raise ClientAccessDeniedError("Access denied")
    return expense


@transaction.atomic
def update_expense(*, expense_id: UUID, user: User, **changes) -> Expense:
    """
    Update an expense.

    The 'other' rule is checked against the merged result, so switching to
    'other' requires a custom type in the same request or already stored.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ClientAccessDeniedError: If user has no access
        InvalidExpenseError: If the result breaks the 'other' rule
    """
    expense = get_expense(expense_id=expense_id, user=user, for_update=True)

    for attr in ('custom_expense_type', 'description'):
        if attr in changes:
            changes[attr] = (changes[attr] or '').strip()
    for attr, value in changes.items():
        setattr(expense, attr, value)

    _validate_expense_type(expense.expense_type, expense.custom_expense_type)
    expense.save()

    logger.info("Expense %s updated: %s", expense.id, sorted(changes))
    return expense


def delete_expense(*, expense_id: UUID, user: User) -> None:
    """
    Delete an expense and its receipts (admin only).

    Stored receipts are removed after the rows are committed.

    Raises:
        FinanceAccessDeniedError: If user is not an admin
        ExpenseNotFoundError: If expense doesn't exist
    """
    _require_admin(user, 'delete expenses')
    with transaction.atomic():
        expense = get_expense(expense_id=expense_id, user=user, for_update=True)
        keys = list(expense.documents.values_list('storage_key', flat=True))
        expense.delete()
        discard_after_commit(keys)
    logger.info("Expense %s of client %s deleted", expense_id, expense.client_id)


def list_expenses(
    *,
    client_id: UUID,
    user: User,
    expense_type: Optional[str] = None
) -> QuerySet:
    """List a client's expenses with their documents, newest first."""
    client = get_accessible_client(client_id=client_id, user=user)
    queryset = Expense.objects.filter(client=client)
    if expense_type:
        queryset = queryset.filter(expense_type=expense_type)
    return queryset.prefetch_related('documents').order_by('-created_at')


def expense_summary(*, client_id: UUID, user: User) -> dict:
    """
    Totals of a client's expenses.

    Returns:
        Dictionary with:
        - total: Decimal - sum of all expenses
        - count: int - number of expenses
        - by_type: dict - {expense_type: {'total': Decimal, 'count': int}}
    """
    client = get_accessible_client(client_id=client_id, user=user)
    rows = (
        Expense.objects.filter(client=client)
        .order_by()
        .values('expense_type')
        .annotate(total=Sum('amount'), count=Count('id'))
    )
    by_type = {
        row['expense_type']: {'total': row['total'], 'count': row['count']}
        for row in rows
    }
    return {
        'total': sum((t['total'] for t in by_type.values()), ZERO),
        'count': sum(t['count'] for t in by_type.values()),
        'by_type': by_type,
    }


# ------------------------------------------
# Expense documents
# ------------------------------------------

def upload_expense_documents(*, expense_id: UUID, files: list, user: User) -> list:
    """
    Attach receipts to an expense.

    Files are validated like step documents before anything is stored.

    Raises:
        DocumentValidationError: If any file is invalid
        ExpenseNotFoundError: If expense doesn't exist
        ClientAccessDeniedError: If user has no access
        ExternalStorageError: If the object storage fails
    """
    validate_uploads(files)

    with transaction.atomic():
        expense = get_expense(expense_id=expense_id, user=user, for_update=True)
        prefix = f"clients/{expense.client_id}/expenses/{expense.id}"

        stored_keys = []
        documents = []
        try:
            for f in files:
                key = store_file(f, prefix=prefix)
                stored_keys.append(key)
                documents.append(ExpenseDocument.objects.create(
                    expense=expense,
                    original_name=f.name,
                    storage_key=key,
                    size=f.size,
                    mime_type=f.content_type,
                    uploaded_by=user,
                ))
        except Exception:
            discard_stored_files(stored_keys)
            raise

    logger.info("Uploaded %d document(s) to expense %s", len(documents), expense.id)
    return documents


def get_expense_document(*, document_id: UUID, user: User) -> ExpenseDocument:
    """
    Raises:
        ExpenseDocumentNotFoundError: If document doesn't exist
        ClientAccessDeniedError: If user has no access
    """
    try:
        document = ExpenseDocument.objects.select_related('expense__client').get(id=document_id)
    except ExpenseDocument.DoesNotExist:
        raise ExpenseDocumentNotFoundError(f"Expense document {document_id} not found")

    if not user_can_access_client(user, document.expense.client):
        raise ClientAccessDeniedError("Access denied")
    return document


def delete_expense_document(*, document_id: UUID, user: User) -> None:
    """Delete an expense document: the stored object first, then the record."""
    document = get_expense_document(document_id=document_id, user=user)
    delete_stored_file(document.storage_key)
    document.delete()
    logger.info("Expense document %s deleted", document_id)


def get_expense_document_url(*, document_id: UUID, user: User) -> str:
    """Return a fresh signed URL for an expense document."""
    return signed_url(get_expense_document(document_id=document_id, user=user).storage_key)


def purge_expense_files(*, client: Client) -> int:
    """
    Delete every expense receipt record of a client.

    The stored objects are removed once the surrounding transaction commits.

    Returns:
        Number of files scheduled for removal
    """
    documents = ExpenseDocument.objects.filter(expense__client=client)
    keys = list(documents.values_list('storage_key', flat=True))
    documents.delete()
    discard_after_commit(keys)
    return len(keys)


# ------------------------------------------
# Financial aggregator
# ------------------------------------------

@dataclass
class ClientFinancials:
    client_id: UUID
    client_name: str
    mobile: str
    status: str
    price_finalized: Decimal
    total_payments_received: Decimal
    outstanding_balance: Decimal
    total_expenses: Decimal
    net_profit_loss: Decimal
    last_payment_date: Optional[object]
    payment_status: str
    payment_count: int
    expense_count: int
    payments_in_range: Optional[Decimal] = None
    expenses_in_range: Optional[Decimal] = None
    net_cash_flow_in_range: Optional[Decimal] = None
    # Range details used for the overview's date_range block
    payment_count_in_range: int = field(default=0, repr=False)
    expense_count_in_range: int = field(default=0, repr=False)


def to_decimal(value) -> Decimal:
    """Convert a stored price to Decimal; empty or malformed values count as zero."""
    if value in (None, ''):
        return ZERO
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning("Ignoring malformed price value %r", value)
        return ZERO


def price_finalized_for(client_ids) -> dict:
    """Return {client_id: price_finalized} from step 1 pricing details."""
    prices = {}
    for client_id, data in StepData.objects.filter(
        client_id__in=client_ids, step_number=1
    ).values_list('client_id', 'data'):
        pricing = (data or {}).get('pricing_details') or {}
        prices[client_id] = to_decimal(pricing.get('price_finalized'))
    return prices


def classify_payment_status(
    *,
    outstanding_balance: Decimal,
    payment_count: int,
    last_payment_at,
    today: date
) -> str:
    """
    Classify a client's payment state.

    Checked in order: no payments, fully paid, overdue (balance left and no
    payment within the overdue window), partial.
    """
    if payment_count == 0:
        return PaymentStatus.NO_PAYMENTS
    if outstanding_balance <= 0:
        return PaymentStatus.FULLY_PAID
    window = timedelta(days=settings.SOLARTRACK_PAYMENT_OVERDUE_DAYS)
    if timezone.localdate(last_payment_at) < today - window:
        return PaymentStatus.OVERDUE
    return PaymentStatus.PARTIAL


def _in_range(moment, start_date: Optional[date], end_date: Optional[date]) -> bool:
    day = timezone.localdate(moment)
    if start_date and day < start_date:
        return False
    if end_date and day > end_date:
        return False
    return True


def summarize_client(
    client: Client,
    *,
    price_finalized: Decimal,
    payments: list,
    expenses: list,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None
) -> ClientFinancials:
    """Build the financial figures of one client from its already-loaded rows."""
    today = today or timezone.localdate()
    total_paid = sum((p.amount for p in payments), ZERO)
    total_expenses = sum((e.amount for e in expenses), ZERO)
    outstanding = price_finalized - total_paid
    last_payment_at = max((p.timestamp for p in payments), default=None)

    summary = ClientFinancials(
        client_id=client.id,
        client_name=client.name,
        mobile=client.mobile,
        status=client.status,
        price_finalized=price_finalized,
        total_payments_received=total_paid,
        outstanding_balance=outstanding,
        total_expenses=total_expenses,
        net_profit_loss=total_paid - total_expenses,
        last_payment_date=last_payment_at,
        payment_status=classify_payment_status(
            outstanding_balance=outstanding,
            payment_count=len(payments),
            last_payment_at=last_payment_at,
            today=today,
        ),
        payment_count=len(payments),
        expense_count=len(expenses),
    )

    if start_date or end_date:
        payments_in_range = [p for p in payments if _in_range(p.timestamp, start_date, end_date)]
        expenses_in_range = [e for e in expenses if _in_range(e.created_at, start_date, end_date)]
        summary.payments_in_range = sum((p.amount for p in payments_in_range), ZERO)
        summary.expenses_in_range = sum((e.amount for e in expenses_in_range), ZERO)
        summary.net_cash_flow_in_range = summary.payments_in_range - summary.expenses_in_range
        summary.payment_count_in_range = len(payments_in_range)
        summary.expense_count_in_range = len(expenses_in_range)

    return summary


def compute_overview(
    *,
    client_id: UUID,
    user: User,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> ClientFinancials:
    """
    Financial figures of one client (admin only).

    Args:
        client_id: Client to summarize
        user: Acting user
        start_date: Optional inclusive start of the range figures
        end_date: Optional inclusive end of the range figures

    Raises:
        FinanceAccessDeniedError: If user is not an admin
        InvalidDateRangeError: If end_date is before start_date
        ClientNotFoundError: If client doesn't exist
    """
    _require_admin(user, 'view financial data')
    _check_range(start_date, end_date)
    client = get_accessible_client(client_id=client_id, user=user)

    return summarize_client(
        client,
        price_finalized=price_finalized_for([client.id]).get(client.id, ZERO),
        payments=list(client.payment_logs.all()),
        expenses=list(client.expenses.all()),
        start_date=start_date,
        end_date=end_date,
    )


def financial_overview(
    *,
    user: User,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> dict:
    """
    Financial overview across all clients (admin only).

    Returns:
        Dictionary with:
        - clients: list[ClientFinancials] sorted by outstanding balance, highest first
        - summary: dict - portfolio totals and payment status counts
        - date_range: dict or None - range totals when a range is given

    Raises:
        FinanceAccessDeniedError: If user is not an admin
        InvalidDateRangeError: If end_date is before start_date
    """
    _require_admin(user, 'view financial data')
    _check_range(start_date, end_date)

    clients = list(
        accessible_clients(user)
        .prefetch_related('payment_logs', 'expenses')
        .order_by('created_at')
    )
    prices = price_finalized_for([c.id for c in clients])
    today = timezone.localdate()

    rows = [
        summarize_client(
            client,
            price_finalized=prices.get(client.id, ZERO),
            payments=list(client.payment_logs.all()),
            expenses=list(client.expenses.all()),
            start_date=start_date,
            end_date=end_date,
            today=today,
        )
        for client in clients
    ]
    # sorted() is stable, so equal balances keep creation order
    rows = sorted(rows, key=lambda r: r.outstanding_balance, reverse=True)

    status_counts = {s: 0 for s in PaymentStatus.values}
    for row in rows:
        status_counts[row.payment_status] += 1

    summary = {
        'total_clients': len(rows),
        'total_price_finalized': sum((r.price_finalized for r in rows), ZERO),
        'total_payments_received': sum((r.total_payments_received for r in rows), ZERO),
        'total_outstanding': sum((r.outstanding_balance for r in rows), ZERO),
        'total_expenses': sum((r.total_expenses for r in rows), ZERO),
        'total_net_profit_loss': sum((r.net_profit_loss for r in rows), ZERO),
        'fully_paid_clients': status_counts[PaymentStatus.FULLY_PAID],
        'partially_paid_clients': (
            status_counts[PaymentStatus.PARTIAL] + status_counts[PaymentStatus.OVERDUE]
        ),
        'overdue_clients': status_counts[PaymentStatus.OVERDUE],
        'unpaid_clients': status_counts[PaymentStatus.NO_PAYMENTS],
        'clients_with_payments': sum(1 for r in rows if r.payment_count),
        'clients_with_expenses': sum(1 for r in rows if r.expense_count),
    }

    date_range = None
    if start_date or end_date:
        payments_total = sum((r.payments_in_range for r in rows), ZERO)
        expenses_total = sum((r.expenses_in_range for r in rows), ZERO)
        date_range = {
            'start_date': start_date,
            'end_date': end_date,
            'payments_in_range': sum(r.payment_count_in_range for r in rows),
            'payments_in_range_total': payments_total,
            'expenses_in_range': sum(r.expense_count_in_range for r in rows),
            'expenses_in_range_total': expenses_total,
            'net_cash_flow_in_range': payments_total - expenses_total,
            'clients_with_payments_in_range': sum(1 for r in rows if r.payment_count_in_range),
            'clients_with_expenses_in_range': sum(1 for r in rows if r.expense_count_in_range),
        }

    return {'clients': rows, 'summary': summary, 'date_range': date_range}
