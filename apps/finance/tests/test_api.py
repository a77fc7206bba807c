import pytest
from decimal import Decimal
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework import status

from apps.finance.models import Expense, ExpenseType, PaymentLog
from apps.finance.services import add_expense, add_payment


# =============================================================================
# Payment Tests
# =============================================================================

@pytest.mark.django_db
class TestPaymentEndpoints:
    """Tests for /api/finance/clients/{id}/payments/ and /api/finance/payments/{id}/"""

    def test_admin_records_payment(self, admin_client, solar_client):
        """Admin can record a payment."""
        url = reverse('finance:payment-list', args=[solar_client.id])
        response = admin_client.post(url, {'amount': '40000.00', 'receiver': 'Office'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['amount'] == '40000.00'
        assert PaymentLog.objects.filter(client=solar_client).count() == 1

    def test_caller_cannot_record_payment(self, caller_client, solar_client):
        """Payments are admin only, even for the assigned caller."""
        url = reverse('finance:payment-list', args=[solar_client.id])
        response = caller_client.post(url, {'amount': '100.00', 'receiver': 'Office'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'error' in response.data

    def test_non_positive_amount_rejected(self, admin_client, solar_client):
        """Amounts must be positive."""
        url = reverse('finance:payment-list', args=[solar_client.id])
        response = admin_client.post(url, {'amount': '0', 'receiver': 'Office'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_payments_newest_first(self, admin_client, admin_user, solar_client):
        """Payments are listed newest first."""
        add_payment(client_id=solar_client.id, user=admin_user, amount=Decimal('1'), receiver='A')
        add_payment(client_id=solar_client.id, user=admin_user, amount=Decimal('2'), receiver='B')

        url = reverse('finance:payment-list', args=[solar_client.id])
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [p['receiver'] for p in response.data] == ['B', 'A']

    def test_update_and_delete_payment(self, admin_client, admin_user, solar_client):
        """Admin can edit and remove a payment."""
        payment = add_payment(client_id=solar_client.id, user=admin_user, amount=Decimal('10'), receiver='A')
        url = reverse('finance:payment-detail', args=[payment.id])

        response = admin_client.patch(url, {'notes': 'Cheque'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['notes'] == 'Cheque'

        response = admin_client.delete(url)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not PaymentLog.objects.filter(id=payment.id).exists()

    def test_unknown_client_returns_404(self, admin_client):
        """Recording against a missing client is a 404."""
        url = reverse('finance:payment-list', args=['00000000-0000-0000-0000-000000000000'])
        response = admin_client.post(url, {'amount': '10.00', 'receiver': 'A'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Expense Tests
# =============================================================================

@pytest.mark.django_db
class TestExpenseEndpoints:
    """Tests for /api/finance/clients/{id}/expenses/ and /api/finance/expenses/{id}/"""

    def test_caller_records_expense(self, caller_client, solar_client):
        """The assigned caller can record expenses."""
        url = reverse('finance:expense-list', args=[solar_client.id])
        data = {'expense_type': ExpenseType.MATERIAL_COST, 'amount': '1500.00', 'description': 'Cables'}
        response = caller_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['type_label'] == 'Material Cost'
        assert response.data['documents'] == []

    def test_other_without_custom_type_rejected(self, caller_client, solar_client):
        """Type 'other' needs a custom type."""
        url = reverse('finance:expense-list', args=[solar_client.id])
        response = caller_client.post(url, {'expense_type': 'other', 'amount': '10.00'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'custom_expense_type' in response.data

    def test_outsider_forbidden(self, other_caller_client, solar_client):
        """Callers without access get 403."""
        url = reverse('finance:expense-list', args=[solar_client.id])
        response = other_caller_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_filter_by_type(self, caller_client, caller_user, solar_client):
        """The expense_type query parameter filters the list."""
        add_expense(client_id=solar_client.id, user=caller_user,
                    expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('10'))
        add_expense(client_id=solar_client.id, user=caller_user,
                    expense_type=ExpenseType.LABOUR_COST, amount=Decimal('20'))

        url = reverse('finance:expense-list', args=[solar_client.id])
        response = caller_client.get(url, {'expense_type': ExpenseType.LABOUR_COST})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['amount'] == '20.00'

    def test_caller_cannot_delete(self, caller_client, admin_client, caller_user, solar_client):
        """Only admins delete expenses."""
        expense = add_expense(client_id=solar_client.id, user=caller_user,
                              expense_type=ExpenseType.AUTO_COST, amount=Decimal('300'))
        url = reverse('finance:expense-detail', args=[expense.id])

        assert caller_client.delete(url).status_code == status.HTTP_403_FORBIDDEN
        assert admin_client.delete(url).status_code == status.HTTP_204_NO_CONTENT
        assert not Expense.objects.filter(id=expense.id).exists()

    def test_upload_receipt(self, caller_client, caller_user, solar_client):
        """Receipts upload as multipart and come back with a URL."""
        expense = add_expense(client_id=solar_client.id, user=caller_user,
                              expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('300'))
        url = reverse('finance:expense-documents', args=[expense.id])
        upload = SimpleUploadedFile('bill.pdf', b'%PDF-1.4 bill', content_type='application/pdf')

        response = caller_client.post(url, {'files': [upload]}, format='multipart')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data[0]['original_name'] == 'bill.pdf'
        assert response.data[0]['url']

    def test_summary(self, caller_client, caller_user, solar_client):
        """Summary returns totals by type."""
        add_expense(client_id=solar_client.id, user=caller_user,
                    expense_type=ExpenseType.MATERIAL_COST, amount=Decimal('10'))

        url = reverse('finance:expense-summary', args=[solar_client.id])
        response = caller_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['by_type'][ExpenseType.MATERIAL_COST]['total'] == '10.00'


# =============================================================================
# Overview Tests
# =============================================================================

@pytest.mark.django_db
class TestOverviewEndpoints:
    """Tests for /api/finance/clients/{id}/overview/ and /api/finance/overview/"""

    def test_client_overview(self, admin_client, admin_user, priced_client):
        """Client overview reports balance and status."""
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('40000'), receiver='A')
        add_payment(client_id=priced_client.id, user=admin_user, amount=Decimal('30000'), receiver='A')

        url = reverse('finance:client-overview', args=[priced_client.id])
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['outstanding_balance'] == '30000.00'
        assert response.data['payment_status'] == 'partial'

    def test_caller_forbidden(self, caller_client, priced_client):
        """Financial overview is admin only."""
        url = reverse('finance:client-overview', args=[priced_client.id])
        response = caller_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_reversed_range_rejected(self, admin_client):
        """end_date before start_date is a 400."""
        url = reverse('finance:financial-overview')
        response = admin_client.get(url, {'start_date': '2025-03-10', 'end_date': '2025-03-01'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_portfolio_overview(self, admin_client, priced_client):
        """Portfolio overview lists clients and a summary."""
        url = reverse('finance:financial-overview')
        response = admin_client.get(url, {'start_date': '2025-01-01'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['summary']['total_clients'] == 1
        assert response.data['summary']['unpaid_clients'] == 1
        assert response.data['clients'][0]['client_name'] == 'Rajesh Kumar'
        assert response.data['date_range']['start_date'] == '2025-01-01'
