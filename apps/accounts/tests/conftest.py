import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole


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
        password='OtherPass123!',
        first_name='Meena',
        last_name='Other',
        role=UserRole.CALLER,
    )


@pytest.fixture
def user_inactive(db):
    """Create and return an inactive user."""
    return User.objects.create_user(
        email='inactive@example.com',
        password='TestPass123!',
        first_name='Inactive',
        is_active=False,
    )


def _authenticate(client, user):
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def admin_client(admin_user):
    """Return an API client authenticated as admin."""
    return _authenticate(APIClient(), admin_user)


@pytest.fixture
def caller_client(caller_user):
    """Return an API client authenticated as a caller."""
    return _authenticate(APIClient(), caller_user)
