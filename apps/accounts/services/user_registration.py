"""User registration service."""

import logging

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from apps.accounts.models import UserRole
from .exceptions import UserRegistrationError, EmailAlreadyInUseError

User = get_user_model()
logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role: str = UserRole.CALLER,
    registered_by=None,
) -> User:
    """
    Register a new back-office user.

    Only an authenticated admin may create another admin. Everyone else
    gets a caller account regardless of the requested role.

    Args:
        email: User's email address (login name)
        password: User's password (will be hashed)
        first_name: Optional first name
        last_name: Optional last name
        role: Requested role
        registered_by: The acting user, if the request was authenticated

    Returns:
        Created User instance

    Raises:
        EmailAlreadyInUseError: If the email is taken
        UserRegistrationError: If registration fails
    """
    if User.objects.filter(email__iexact=email).exists():
        raise EmailAlreadyInUseError("User with this email already exists")

    if role == UserRole.ADMIN and not (registered_by and registered_by.is_admin):
        role = UserRole.CALLER

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
    except IntegrityError as e:
        raise UserRegistrationError(f"Registration failed: {str(e)}")

    logger.info("Registered user %s with role %s", user.id, user.role)
    return user
