import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.clients.services import create_client


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
def steps(solar_client):
    """The client's steps keyed by step number."""
    return {step.step_number: step for step in solar_client.steps.all()}
