import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.calls.models import UNASSIGNED, PhoneNumber, PhoneNumberStatus


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    """Create and return an admin user."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        first_name='Asha',
        last_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def caller_user(db):
    """Create and return a caller."""
    return User.objects.create_user(
        email='caller@example.com',
        password='TestPass123!',
        first_name='Ravi',
        last_name='Caller',
        role=UserRole.CALLER,
    )


@pytest.fixture
def other_caller(db):
    """Create and return a second caller."""
    return User.objects.create_user(
        email='othercaller@example.com',
        password='TestPass123!',
        first_name='Meena',
        last_name='Other',
        role=UserRole.CALLER,
    )


def _authenticate(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def admin_client(admin_user):
    """Return an API client authenticated as admin."""
    return _authenticate(admin_user)


@pytest.fixture
def caller_client(caller_user):
    """Return an API client authenticated as the caller."""
    return _authenticate(caller_user)


@pytest.fixture
def other_caller_client(other_caller):
    """Return an API client authenticated as the second caller."""
    return _authenticate(other_caller)


@pytest.fixture
def make_numbers(db):
    """Return a helper that adds available numbers to the pool."""
    def _make_numbers(count, area_code='PUNE', start=9000000000):
        return [
            PhoneNumber.objects.create(
                phone_number=str(start + i),
                assigned_to=UNASSIGNED,
                status=PhoneNumberStatus.AVAILABLE,
                area_code=area_code,
            )
            for i in range(count)
        ]
    return _make_numbers


@pytest.fixture
def assigned_number(db, caller_user):
    """A number assigned to the caller."""
    return PhoneNumber.objects.create(
        phone_number='9123456789',
        assigned_to=str(caller_user.id),
        status=PhoneNumberStatus.ASSIGNED,
        area_code='PUNE',
        name='Suresh Patil',
    )
