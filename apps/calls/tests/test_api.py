import pytest
from datetime import timedelta
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.calls.models import Call, CallStatus, PhoneNumber, PhoneNumberStatus
from apps.calls.services import create_call, create_follow_up


# =============================================================================
# Phone Number Tests
# =============================================================================

@pytest.mark.django_db
class TestPhoneNumberEndpoints:
    """Tests for /api/phone-numbers/"""

    def test_unauthenticated_rejected(self, api_client):
        """Anonymous requests are refused."""
        response = api_client.get(reverse('calls:phone-number-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_is_paginated(self, admin_client, make_numbers):
        """Numbers come back in pages of 50."""
        make_numbers(55)

        response = admin_client.get(reverse('calls:phone-number-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 55
        assert len(response.data['results']) == 50
        assert response.data['next'] is not None

    def test_caller_sees_own_numbers(self, caller_client, make_numbers, assigned_number):
        """Callers only get their assigned numbers."""
        make_numbers(3)

        response = caller_client.get(reverse('calls:phone-number-list'))

        assert [n['phone_number'] for n in response.data['results']] == [assigned_number.phone_number]

    def test_invalid_filter_rejected(self, admin_client):
        """Unknown statuses are a validation error."""
        response = admin_client.get(reverse('calls:phone-number-list'), {'status': 'lost'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create(self, admin_client):
        """Admin adds a number; it is stored normalized."""
        response = admin_client.post(
            reverse('calls:phone-number-list'),
            {'phone_number': '+91 98765 43210', 'area_code': 'PUNE'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['phone_number'] == '9876543210'
        assert response.data['assigned_to'] == 'UNASSIGNED'

    def test_create_duplicate_conflicts(self, admin_client, make_numbers):
        """An existing number gives 409."""
        make_numbers(1)

        response = admin_client.post(
            reverse('calls:phone-number-list'),
            {'phone_number': '9000000000', 'area_code': 'PUNE'},
            format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert 'error' in response.data

    def test_create_invalid_number(self, admin_client):
        """Malformed numbers give 400."""
        response = admin_client.post(
            reverse('calls:phone-number-list'),
            {'phone_number': '12345', 'area_code': 'PUNE'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_caller_cannot_create(self, caller_client):
        """Callers cannot add numbers."""
        response = caller_client.post(
            reverse('calls:phone-number-list'),
            {'phone_number': '9876543210', 'area_code': 'PUNE'},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_bulk_import(self, admin_client):
        """Bulk import reports every entry."""
        payload = {'phone_numbers': [
            {'phone_number': '9876543210', 'area_code': 'PUNE', 'name': 'Anil'},
            {'phone_number': '9876543210', 'area_code': 'PUNE'},
            {'phone_number': '123', 'area_code': 'PUNE'},
        ]}

        response = admin_client.post(reverse('calls:phone-number-bulk'), payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['summary'] == {'total': 3, 'created': 1, 'duplicates': 1, 'invalid': 1}
        assert response.data['total_batches'] == 1
        assert response.data['batch_results'][0]['created'] == 1

    def test_bulk_import_empty(self, admin_client):
        """An empty import is rejected."""
        response = admin_client.post(reverse('calls:phone-number-bulk'), {'phone_numbers': []}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_bulk_import_admin_only(self, caller_client):
        """Callers cannot import."""
        response = caller_client.post(
            reverse('calls:phone-number-bulk'),
            {'phone_numbers': [{'phone_number': '9876543210', 'area_code': 'PUNE'}]},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_assign(self, admin_client, caller_user, make_numbers):
        """Admin assigns numbers to a caller."""
        make_numbers(4)

        response = admin_client.post(
            reverse('calls:phone-number-assign'),
            {'user_id': str(caller_user.id), 'count': 3},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['actual_count'] == 3
        assert len(response.data['assigned_numbers']) == 3
        assert PhoneNumber.objects.filter(status=PhoneNumberStatus.ASSIGNED).count() == 3

    def test_assign_to_admin_rejected(self, admin_client, admin_user, make_numbers):
        """Only callers can receive numbers."""
        make_numbers(1)

        response = admin_client.post(
            reverse('calls:phone-number-assign'),
            {'user_id': str(admin_user.id)},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_area_codes_and_stats(self, admin_client, make_numbers):
        """Area code counts and stats reflect the pool."""
        make_numbers(2)

        area_codes = admin_client.get(reverse('calls:area-code-list'))
        stats = admin_client.get(reverse('calls:phone-number-stats'))

        assert area_codes.data == [{'area_code': 'PUNE', 'count': 2}]
        assert stats.data['available'] == 2

    def test_delete_area_code(self, admin_client, make_numbers):
        """All free numbers of the area code are deleted."""
        make_numbers(2)

        response = admin_client.delete(reverse('calls:area-code-delete', args=['PUNE']))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_count'] == 2

    def test_delete_area_code_nothing_deleted(self, admin_client, caller_user, assigned_number):
        """All numbers skipped gives 400 with the report."""
        create_call(user=caller_user, phone_number=assigned_number.phone_number)

        response = admin_client.delete(reverse('calls:area-code-delete', args=['PUNE']))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['skipped_count'] == 1

        forced = admin_client.delete(reverse('calls:area-code-delete', args=['PUNE']) + '?force=true')
        assert forced.status_code == status.HTTP_200_OK

    def test_delete_unknown_area_code(self, admin_client):
        """Unknown area codes give 404."""
        response = admin_client.delete(reverse('calls:area-code-delete', args=['NOWHERE']))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_detail_visibility(self, caller_client, other_caller_client, assigned_number):
        """Callers can read their own number only."""
        url = reverse('calls:phone-number-detail', args=[assigned_number.phone_number])

        assert caller_client.get(url).status_code == status.HTTP_200_OK
        assert other_caller_client.get(url).status_code == status.HTTP_404_NOT_FOUND

    def test_update_and_delete(self, admin_client, assigned_number):
        """Admin edits contact details and deletes the number."""
        url = reverse('calls:phone-number-detail', args=[assigned_number.phone_number])

        response = admin_client.patch(url, {'name': 'Suresh P.'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Suresh P.'

        response = admin_client.delete(url)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not PhoneNumber.objects.exists()


# =============================================================================
# Call Tests
# =============================================================================

@pytest.mark.django_db
class TestCallEndpoints:
    """Tests for /api/calls/"""

    def test_start_and_complete_call(self, caller_client, assigned_number):
        """A caller starts a call and completes it with an outcome."""
        response = caller_client.post(
            reverse('calls:call-list'),
            {'phone_number': assigned_number.phone_number, 'notes': 'First contact'},
            format='json'
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == CallStatus.PENDING

        url = reverse('calls:call-detail', args=[response.data['id']])
        response = caller_client.patch(
            url, {'status': 'completed', 'outcome': 'interested', 'duration': 95}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['completed_at'] is not None
        assigned_number.refresh_from_db()
        assert assigned_number.status == PhoneNumberStatus.ASSIGNED

    def test_second_call_rejected(self, caller_client, caller_user, assigned_number):
        """A number is called once per caller."""
        create_call(user=caller_user, phone_number=assigned_number.phone_number)

        response = caller_client.post(
            reverse('calls:call-list'), {'phone_number': assigned_number.phone_number}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'follow-ups' in response.data['error']

    def test_unassigned_number_forbidden(self, other_caller_client, assigned_number):
        """Callers cannot call numbers assigned to others."""
        response = other_caller_client.post(
            reverse('calls:call-list'), {'phone_number': assigned_number.phone_number}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_number(self, caller_client):
        """Unknown numbers give 404."""
        response = caller_client.post(reverse('calls:call-list'), {'phone_number': '9999999999'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_quick_create(self, caller_client, assigned_number):
        """Quick create picks the next uncalled number."""
        response = caller_client.post(reverse('calls:call-quick-create'), {}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['phone_number'] == assigned_number.phone_number

        response = caller_client.post(reverse('calls:call-quick-create'), {}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_and_stats_are_scoped(self, caller_client, other_caller_client, caller_user, assigned_number):
        """Callers only see their own calls and stats."""
        create_call(user=caller_user, phone_number=assigned_number.phone_number)

        assert len(caller_client.get(reverse('calls:call-list')).data) == 1
        assert other_caller_client.get(reverse('calls:call-list')).data == []
        assert caller_client.get(reverse('calls:call-stats')).data['pending'] == 1

    def test_caller_cannot_delete(self, caller_client, admin_client, caller_user, assigned_number):
        """Delete is admin only."""
        call = create_call(user=caller_user, phone_number=assigned_number.phone_number)
        url = reverse('calls:call-detail', args=[call.id])

        assert caller_client.delete(url).status_code == status.HTTP_403_FORBIDDEN
        assert admin_client.delete(url).status_code == status.HTTP_204_NO_CONTENT
        assert not Call.objects.exists()


# =============================================================================
# Follow-up Tests
# =============================================================================

@pytest.mark.django_db
class TestFollowUpEndpoints:
    """Tests for /api/follow-ups/"""

    @pytest.fixture
    def call(self, caller_user, assigned_number):
        return create_call(user=caller_user, phone_number=assigned_number.phone_number)

    def test_schedule_follow_up(self, caller_client, call):
        """A caller schedules a follow-up for their call."""
        response = caller_client.post(
            reverse('calls:follow-up-list'),
            {
                'call_id': str(call.id),
                'scheduled_date': (timezone.now() + timedelta(days=1)).isoformat(),
                'priority': 4,
            },
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['priority'] == 4
        assert response.data['is_overdue'] is False

    def test_priority_range(self, caller_client, call):
        """Priority must be between 1 and 5."""
        response = caller_client.post(
            reverse('calls:follow-up-list'),
            {'call_id': str(call.id), 'scheduled_date': timezone.now().isoformat(), 'priority': 9},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_overdue_filter(self, caller_client, caller_user, call):
        """?overdue=true lists pending follow-ups in the past."""
        past = create_follow_up(user=caller_user, call_id=call.id, scheduled_date=timezone.now() - timedelta(days=1))
        create_follow_up(user=caller_user, call_id=call.id, scheduled_date=timezone.now() + timedelta(days=1))

        response = caller_client.get(reverse('calls:follow-up-list'), {'overdue': 'true'})

        assert response.status_code == status.HTTP_200_OK
        assert [f['id'] for f in response.data] == [str(past.id)]

    def test_other_caller_cannot_read(self, other_caller_client, caller_user, call):
        """Follow-ups are private to their owner."""
        follow_up = create_follow_up(user=caller_user, call_id=call.id, scheduled_date=timezone.now())

        response = other_caller_client.get(reverse('calls:follow-up-detail', args=[follow_up.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
