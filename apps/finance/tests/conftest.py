import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.clients.services import create_client, update_step_data


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
    """Create and return a caller who owns the test client."""
    return User.objects.create_user(
        email='caller@example.com',
        password='TestPass123!',
        first_name='Ravi',
        last_name='Caller',
        role=UserRole.CALLER,
    )


@pytest.fixture
def other_caller(db):
    """Create and return a caller with no clients."""
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
    """Return an API client authenticated as the assigned caller."""
    return _authenticate(caller_user)


@pytest.fixture
def other_caller_client(other_caller):
    """Return an API client authenticated as an unrelated caller."""
    return _authenticate(other_caller)


@pytest.fixture
def solar_client(db, admin_user, caller_user):
    """Create a client assigned to the caller."""
    return create_client(
        name='Rajesh Kumar',
        mobile='9876543210',
        address='12 MG Road, Pune',
        assigned_to=caller_user,
        created_by=admin_user,
    )


@pytest.fixture
def set_price(admin_user):
    """Return a helper that stores the finalized price of a client."""
    def _set_price(client, amount):
        update_step_data(
            client_id=client.id,
            step_number=1,
            user=admin_user,
            sections={'pricing_details': {'price_finalized': Decimal(amount)}},
        )
    return _set_price


@pytest.fixture
def priced_client(solar_client, set_price):
    """Client with a finalized price of 100000."""
    set_price(solar_client, '100000.00')
    return solar_client
