from unittest import mock

import pytest
from datetime import timedelta
from decimal import Decimal
from django.core.files.storage import storages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from apps.clients.exceptions import ClientAccessDeniedError
from apps.clients.models import StepData
from apps.clients.services import create_client
from apps.finance.exceptions import (
    FinanceAccessDeniedError,
    InvalidDateRangeError,
    InvalidExpenseError,
)
from apps.finance.models import Expense, ExpenseDocument, ExpenseType, PaymentStatus
from apps.finance.services import (
    add_expense,
    add_payment,
    classify_payment_status,
    compute_overview,
    delete_expense,
    expense_summary,
    financial_overview,
    price_finalized_for,
    purge_expense_files,
    update_expense,
    upload_expense_documents,
)


def _receipt(name='receipt.pdf'):
    return SimpleUploadedFile(name, b'%PDF-1.4 receipt', content_type='application/pdf')


@pytest.mark.django_db
class TestComputeOverview:

    def test_partial_payment_scenario(self, priced_client, admin_user):
        """100000 priced, 70000 paid and 30000 spent leaves 30000 outstanding."""
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('40000'), receiver='Office')
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('30000'), receiver='Office')
        add_expense(
            client_id=priced_client.id,
            user=admin_user,
            expense_type=ExpenseType.MATERIAL_COST,
            amount=Decimal('30000'),
        )

        overview = compute_overview(client_id=priced_client.id, user=admin_user)

        assert overview.price_finalized == Decimal('100000.00')
        assert overview.total_payments_received == Decimal('70000')
        assert overview.outstanding_balance == Decimal('30000')
        assert overview.total_expenses == Decimal('30000')
        assert overview.net_profit_loss == Decimal('40000')
        assert overview.payment_status == PaymentStatus.PARTIAL
        assert overview.payment_count == 2

    def test_no_payments(self, priced_client, admin_user):
        """A client without payments owes the full price."""
        overview = compute_overview(client_id=priced_client.id, user=admin_user)

        assert overview.payment_status == PaymentStatus.NO_PAYMENTS
        assert overview.outstanding_balance == Decimal('100000.00')
        assert overview.last_payment_date is None

    def test_fully_paid(self, priced_client, admin_user):
        """Paying the full price marks the client fully paid."""
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('100000'), receiver='Bank')

        overview = compute_overview(client_id=priced_client.id, user=admin_user)

        assert overview.payment_status == PaymentStatus.FULLY_PAID
        assert overview.outstanding_balance == Decimal('0')

    def test_price_read_from_step_one_pricing(self, priced_client, admin_user):
        """The finalized price comes from step 1 pricing details; malformed values count as zero."""
        other = create_client(
            name='Kavita Joshi', mobile='9822001100', address='Kothrud, Pune',
            assigned_to=admin_user, created_by=admin_user,
        )
        StepData.objects.create(
            client=other, step_number=1, data={'pricing_details': {'price_finalized': 'about 2 lakh'}},
        )

        prices = price_finalized_for([priced_client.id, other.id])

        assert prices == {priced_client.id: Decimal('100000.00'), other.id: Decimal('0')}

    def test_overdue_when_last_payment_is_old(self, priced_client, admin_user):
        """A balance with no recent payment is overdue."""
        add_payment(
            client_id=priced_client.id,
            user=admin_user,
            amount=Decimal('10000'),
            receiver='Office',
            timestamp=timezone.now() - timedelta(days=45),
        )

        overview = compute_overview(client_id=priced_client.id, user=admin_user)

        assert overview.payment_status == PaymentStatus.OVERDUE

    def test_missing_price_counts_as_zero(self, solar_client, admin_user):
        """Without pricing details the price is zero."""
        add_payment(client_id=solar_client.id, user=admin_user, amount=Decimal('500'), receiver='Office')

        overview = compute_overview(client_id=solar_client.id, user=admin_user)

        assert overview.price_finalized == Decimal('0.00')
        assert overview.outstanding_balance == Decimal('-500')
        assert overview.payment_status == PaymentStatus.FULLY_PAID

    def test_range_totals(self, priced_client, admin_user):
        """Only payments and expenses inside the inclusive range count."""
        now = timezone.now()
        add_payment(
            client_id=priced_client.id, user=admin_user, amount=Decimal('20000'),
            receiver='Office', timestamp=now - timedelta(days=10),
        )
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('5000'), receiver='Office')
        expense = add_expense(
            client_id=priced_client.id, user=admin_user,
            expense_type=ExpenseType.LABOUR_COST, amount=Decimal('3000'),
        )
        Expense.objects.filter(id=expense.id).update(created_at=now - timedelta(days=8))

        today = timezone.localdate()
        overview = compute_overview(
            client_id=priced_client.id,
            user=admin_user,
            start_date=today - timedelta(days=12),
            end_date=today - timedelta(days=5),
        )

        assert overview.payments_in_range == Decimal('20000')
        assert overview.expenses_in_range == Decimal('3000')
        assert overview.net_cash_flow_in_range == Decimal('17000')
        assert overview.total_payments_received == Decimal('25000')

    def test_no_range_leaves_range_fields_empty(self, priced_client, admin_user):
        """Range fields stay None without a range."""
        overview = compute_overview(client_id=priced_client.id, user=admin_user)

        assert overview.payments_in_range is None
        assert overview.net_cash_flow_in_range is None

    def test_reversed_range_rejected(self, priced_client, admin_user):
        """End before start is rejected."""
        today = timezone.localdate()
        with pytest.raises(InvalidDateRangeError):
            compute_overview(
                client_id=priced_client.id,
                user=admin_user,
                start_date=today,
                end_date=today - timedelta(days=1),
            )

    def test_caller_cannot_view_overview(self, priced_client, caller_user):
        """Financial figures are admin only."""
        with pytest.raises(FinanceAccessDeniedError):
            compute_overview(client_id=priced_client.id, user=caller_user)

    def test_overview_is_repeatable(self, priced_client, admin_user):
        """Two reads without changes give identical figures."""
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('1000'), receiver='Office')

        first = compute_overview(client_id=priced_client.id, user=admin_user)
        second = compute_overview(client_id=priced_client.id, user=admin_user)

        assert first == second


class TestClassifyPaymentStatus:

    def test_order_of_checks(self):
        """No payments wins over balance; zero balance wins over age."""
        today = timezone.localdate()
        old = timezone.now() - timedelta(days=90)

        assert classify_payment_status(
            outstanding_balance=Decimal('10'), payment_count=0, last_payment_at=None, today=today
        ) == PaymentStatus.NO_PAYMENTS
        assert classify_payment_status(
            outstanding_balance=Decimal('0'), payment_count=1, last_payment_at=old, today=today
        ) == PaymentStatus.FULLY_PAID
        assert classify_payment_status(
            outstanding_balance=Decimal('10'), payment_count=1, last_payment_at=old, today=today
        ) == PaymentStatus.OVERDUE
        assert classify_payment_status(
            outstanding_balance=Decimal('10'), payment_count=1,
            last_payment_at=timezone.now(), today=today
        ) == PaymentStatus.PARTIAL


@pytest.mark.django_db
class TestFinancialOverview:

    def test_sorted_by_outstanding_with_summary(self, admin_user, caller_user, priced_client, set_price):
        """Clients are ordered by outstanding balance, highest first."""
        second = create_client(
            name='Priya Sharma', mobile='9123456780', address='Nashik',
            assigned_to=caller_user, created_by=admin_user,
        )
        set_price(second, '250000.00')
        third = create_client(
            name='Amit Patel', mobile='9988776655', address='Satara',
            assigned_to=caller_user, created_by=admin_user,
        )
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('100000'), receiver='Bank')
        add_payment(client_id=second.id, user=admin_user, amount=Decimal('50000'), receiver='Bank')
        add_expense(
            client_id=third.id, user=admin_user,
            expense_type=ExpenseType.AUTO_COST, amount=Decimal('700'),
        )

        result = financial_overview(user=admin_user)

        assert [row.client_id for row in result['clients']] == [second.id, priced_client.id, third.id]
        summary = result['summary']
        assert summary['total_clients'] == 3
        assert summary['total_price_finalized'] == Decimal('350000.00')
        assert summary['total_payments_received'] == Decimal('150000')
        assert summary['total_outstanding'] == Decimal('200000')
        assert summary['total_expenses'] == Decimal('700')
        assert summary['fully_paid_clients'] == 1
        assert summary['partially_paid_clients'] == 1
        assert summary['unpaid_clients'] == 1
        assert summary['clients_with_payments'] == 2
        assert summary['clients_with_expenses'] == 1
        assert result['date_range'] is None

    def test_date_range_block(self, admin_user, priced_client):
        """Range totals appear when a range is given."""
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('1000'), receiver='Office')
        today = timezone.localdate()

        result = financial_overview(user=admin_user, start_date=today, end_date=today)

        date_range = result['date_range']
        assert date_range['payments_in_range'] == 1
        assert date_range['payments_in_range_total'] == Decimal('1000')
        assert date_range['expenses_in_range'] == 0
        assert date_range['net_cash_flow_in_range'] == Decimal('1000')
        assert date_range['clients_with_payments_in_range'] == 1

    def test_caller_denied(self, caller_user):
        """Callers cannot see the portfolio overview."""
        with pytest.raises(FinanceAccessDeniedError):
            financial_overview(user=caller_user)


@pytest.mark.django_db
class TestExpenses:

    def test_other_requires_custom_type(self, solar_client, caller_user):
        """Type 'other' without a custom type is rejected."""
        with pytest.raises(InvalidExpenseError):
            add_expense(
                client_id=solar_client.id, user=caller_user,
                expense_type=ExpenseType.OTHER, amount=Decimal('100'),
            )

    def test_other_with_custom_type_uses_it_as_label(self, solar_client, caller_user):
        """The custom type becomes the label of an 'other' expense."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.OTHER, custom_expense_type='  Crane hire ',
            amount=Decimal('2500'),
        )

        assert expense.custom_expense_type == 'Crane hire'
        assert expense.type_label == 'Crane hire'

    def test_switching_to_other_checks_merged_row(self, solar_client, caller_user):
        """An update to 'other' needs a custom type."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.LABOUR_COST, amount=Decimal('100'),
        )

        with pytest.raises(InvalidExpenseError):
            update_expense(expense_id=expense.id, user=caller_user, expense_type=ExpenseType.OTHER)

    def test_outsider_cannot_add_expense(self, solar_client, other_caller):
        """Callers without access to the client are refused."""
        with pytest.raises(ClientAccessDeniedError):
            add_expense(
                client_id=solar_client.id, user=other_caller,
                expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('100'),
            )

    def test_only_admin_deletes(self, solar_client, caller_user, admin_user):
        """Callers cannot delete expenses; admins can."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('100'),
        )

        with pytest.raises(FinanceAccessDeniedError):
            delete_expense(expense_id=expense.id, user=caller_user)

        delete_expense(expense_id=expense.id, user=admin_user)
        assert not Expense.objects.filter(id=expense.id).exists()

    def test_summary_by_type(self, solar_client, caller_user):
        """Totals are grouped by expense type."""
        for amount in ('100', '250'):
            add_expense(
                client_id=solar_client.id, user=caller_user,
                expense_type=ExpenseType.MATERIAL_COST, amount=Decimal(amount),
            )
        add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.LABOUR_COST, amount=Decimal('50'),
        )

        summary = expense_summary(client_id=solar_client.id, user=caller_user)

        assert summary['total'] == Decimal('400')
        assert summary['count'] == 3
        assert summary['by_type'][ExpenseType.MATERIAL_COST] == {'total': Decimal('350'), 'count': 2}


@pytest.mark.django_db
class TestExpenseDocuments:

    def test_upload_stores_under_expense_prefix(self, solar_client, caller_user):
        """Receipts are stored below the client's expense folder."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('100'),
        )

        documents = upload_expense_documents(expense_id=expense.id, files=[_receipt()], user=caller_user)

        assert len(documents) == 1
        key = documents[0].storage_key
        assert key.startswith(f'clients/{solar_client.id}/expenses/{expense.id}/')
        assert storages['documents'].exists(key)

    def test_delete_expense_removes_receipts(self, solar_client, caller_user, admin_user,
                                             django_capture_on_commit_callbacks):
        """Deleting an expense removes its stored receipts after commit."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('100'),
        )
        key = upload_expense_documents(
            expense_id=expense.id, files=[_receipt()], user=caller_user
        )[0].storage_key

        with django_capture_on_commit_callbacks(execute=True):
            delete_expense(expense_id=expense.id, user=admin_user)

        assert not storages['documents'].exists(key)
        assert not ExpenseDocument.objects.filter(storage_key=key).exists()

    def test_delete_expense_with_failing_storage(self, solar_client, caller_user, admin_user, caplog,
                                                 django_capture_on_commit_callbacks):
        """A receipt that cannot be removed is logged; the expense is still deleted."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('100'),
        )
        key = upload_expense_documents(
            expense_id=expense.id, files=[_receipt()], user=caller_user
        )[0].storage_key

        storage = storages['documents']
        with mock.patch.object(storage, 'delete', side_effect=OSError('bucket unavailable')):
            with django_capture_on_commit_callbacks(execute=True):
                delete_expense(expense_id=expense.id, user=admin_user)

        assert not Expense.objects.filter(id=expense.id).exists()
        assert storage.exists(key)
        assert f'Orphaned stored object left behind: {key}' in caplog.text

    def test_purge_counts_removed_files(self, solar_client, caller_user):
        """Purging a client's receipts reports how many were removed."""
        expense = add_expense(
            client_id=solar_client.id, user=caller_user,
            expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('100'),
        )
        upload_expense_documents(
            expense_id=expense.id, files=[_receipt('a.pdf'), _receipt('b.pdf')], user=caller_user
        )

        assert purge_expense_files(client=solar_client) == 2
        assert not ExpenseDocument.objects.filter(expense=expense).exists()
