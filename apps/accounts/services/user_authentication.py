"""Login for back-office users."""

import logging

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

logger = logging.getLogger(__name__)

User = get_user_model()


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Check an email/password pair and stamp last_login.

    The row is locked while last_login is written.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: If the account is deactivated
    """
    user = User.objects.select_for_update().filter(email__iexact=email).first()
    if user is None or not user.check_password(password):
        logger.warning("Failed login for %s", email)
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    logger.info("User %s logged in", user.id)
    return user
