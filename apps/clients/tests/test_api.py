from unittest import mock

import pytest
from django.core.files.storage import storages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework import status

from apps.clients.models import Client, StepStatus
from apps.documents.models import DocumentFile
from apps.documents.services import ExternalStorageError, upload_to_category


# =============================================================================
# Client Tests
# =============================================================================

@pytest.mark.django_db
class TestClientEndpoints:
    """Tests for /api/clients/"""

    def test_unauthenticated_rejected(self, api_client):
        """Anonymous requests are refused."""
        response = api_client.get(reverse('clients:client-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_client(self, caller_client, caller_user):
        """A caller creates a client assigned to themselves."""
        response = caller_client.post(
            reverse('clients:client-list'),
            {'name': 'Priya Sharma', 'mobile': '9876543211', 'address': 'Park Street, Mumbai'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['current_step'] == 1
        assert response.data['status'] == 'active'
        assert response.data['assigned_to']['id'] == str(caller_user.id)

    def test_create_for_someone_else_forbidden(self, caller_client, other_caller):
        """Callers cannot assign new clients to others."""
        response = caller_client.post(
            reverse('clients:client-list'),
            {
                'name': 'Priya Sharma',
                'mobile': '9876543211',
                'address': 'Mumbai',
                'assigned_to': str(other_caller.id),
            },
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_is_paginated_and_scoped(self, caller_client, other_caller_client, solar_client):
        """Lists are paginated and only show accessible clients."""
        response = caller_client.get(reverse('clients:client-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert other_caller_client.get(reverse('clients:client-list')).data['count'] == 0

    def test_invalid_date_range(self, admin_client):
        """A reversed creation range is rejected."""
        response = admin_client.get(
            reverse('clients:client-list'),
            {'created_at_start': '2024-05-10', 'created_at_end': '2024-05-01'}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_retrieve_denied_for_other_caller(self, other_caller_client, solar_client):
        """Unrelated callers get 403."""
        response = other_caller_client.get(reverse('clients:client-detail', args=[solar_client.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update(self, caller_client, solar_client):
        """Assignees can edit client details."""
        response = caller_client.patch(
            reverse('clients:client-detail', args=[solar_client.id]),
            {'comments': 'Prefers evening calls'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['comments'] == 'Prefers evening calls'

    def test_delete_admin_only(self, caller_client, admin_client, solar_client):
        """Only admins delete clients."""
        url = reverse('clients:client-detail', args=[solar_client.id])

        assert caller_client.delete(url).status_code == status.HTTP_403_FORBIDDEN
        assert admin_client.delete(url).status_code == status.HTTP_204_NO_CONTENT
        assert not Client.objects.exists()

    def test_delete_with_failing_storage(self, admin_client, caller_user, solar_client, caplog,
                                         django_capture_on_commit_callbacks):
        """Rows are deleted even when a stored file cannot be removed; the leftover is logged."""
        upload_to_category(
            client_id=solar_client.id, step_number=1, category='aadhar', user=caller_user,
            files=[
                SimpleUploadedFile(name, b'%PDF-1.4', content_type='application/pdf')
                for name in ('front.pdf', 'back.pdf')
            ],
        )
        storage = storages['documents']
        real_delete = storage.delete
        attempted = []

        def flaky_delete(name):
            attempted.append(name)
            if len(attempted) == 2:
                raise OSError('bucket unavailable')
            real_delete(name)

        url = reverse('clients:client-detail', args=[solar_client.id])
        with mock.patch.object(storage, 'delete', side_effect=flaky_delete):
            with django_capture_on_commit_callbacks(execute=True):
                response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not DocumentFile.objects.exists()
        assert not storage.exists(attempted[0])
        assert storage.exists(attempted[1])
        assert 'Orphaned stored object left behind' in caplog.text

    def test_delete_storage_error_is_bad_gateway(self, admin_client, solar_client):
        """Storage failures surface as 502 with an error message."""
        url = reverse('clients:client-detail', args=[solar_client.id])
        with mock.patch(
            'apps.clients.views.delete_client',
            side_effect=ExternalStorageError('Failed to delete file'),
        ):
            response = admin_client.delete(url)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.data['error'] == 'Failed to delete file'

    def test_steps_and_templates(self, caller_client, solar_client):
        """Steps follow the five templates."""
        steps = caller_client.get(reverse('clients:client-steps', args=[solar_client.id]))
        templates = caller_client.get(reverse('clients:client-step-templates'))

        assert [s['step_number'] for s in steps.data] == [1, 2, 3, 4, 5]
        assert [t['step_number'] for t in templates.data] == [1, 2, 3, 4, 5]
        assert templates.data[1]['depends_on'] == 1

    def test_steps_reject_unknown_status(self, caller_client, solar_client):
        """Step status filters are validated."""
        response = caller_client.get(
            reverse('clients:client-steps', args=[solar_client.id]), {'status': 'late'}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stats(self, admin_client, solar_client):
        """Dashboard stats are available."""
        response = admin_client.get(reverse('clients:client-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_clients'] == 1


# =============================================================================
# Step Tests
# =============================================================================

@pytest.mark.django_db
class TestStepEndpoints:
    """Tests for /api/client-steps/ and /api/client-sub-steps/"""

    def test_complete_step_advances_client(self, caller_client, solar_client, steps):
        """Completing step 1 moves the client to step 2."""
        response = caller_client.patch(
            reverse('clients:step-detail', args=[steps[1].id]),
            {'status': StepStatus.COMPLETED},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['completed_at'] is not None
        solar_client.refresh_from_db()
        assert solar_client.current_step == 2

    def test_overdue_is_not_a_stored_status(self, caller_client, steps):
        """Overdue cannot be written."""
        response = caller_client.patch(
            reverse('clients:step-detail', args=[steps[1].id]),
            {'status': 'overdue'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_sub_steps(self, caller_client, steps):
        """Sub-steps are listed in order and can be completed."""
        response = caller_client.get(reverse('clients:sub-step-list', args=[steps[3].id]))
        assert len(response.data) == 6

        sub_step_id = response.data[0]['id']
        response = caller_client.patch(
            reverse('clients:sub-step-detail', args=[sub_step_id]),
            {'status': StepStatus.COMPLETED},
            format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['completed_at'] is not None

    def test_other_caller_denied(self, other_caller_client, steps):
        """Unrelated callers cannot read steps."""
        response = other_caller_client.get(reverse('clients:step-detail', args=[steps[1].id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Step Data Tests
# =============================================================================

@pytest.mark.django_db
class TestStepDataEndpoints:
    """Tests for /api/clients/{id}/step-data/{n}/"""

    def test_admin_saves_pricing(self, admin_client, solar_client):
        """Admins save pricing; amounts come back as strings."""
        response = admin_client.patch(
            reverse('clients:step-data', args=[solar_client.id, 1]),
            {'pricing_details': {'price_finalized': '100000.00'}},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['pricing_details']['price_finalized'] == '100000.00'
        assert len(response.data['documents']) == 12

    def test_caller_cannot_save_pricing(self, caller_client, solar_client):
        """Pricing is admin only."""
        response = caller_client.patch(
            reverse('clients:step-data', args=[solar_client.id, 1]),
            {'pricing_details': {'price_finalized': '100000.00'}},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_caller_saves_loan_status(self, caller_client, solar_client):
        """Callers save the sections they own."""
        response = caller_client.patch(
            reverse('clients:step-data', args=[solar_client.id, 2]),
            {'loan_status': {'loan_disbursed': True}},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data'] == {'loan_status': {'loan_disbursed': True}}

    def test_invalid_payment_mode(self, admin_client, solar_client):
        """Payment mode must be a known value."""
        response = admin_client.patch(
            reverse('clients:step-data', args=[solar_client.id, 1]),
            {'payment_mode': 'Barter'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_step(self, admin_client, solar_client):
        """Steps outside 1-5 are rejected."""
        response = admin_client.get(reverse('clients:step-data', args=[solar_client.id, 7]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
