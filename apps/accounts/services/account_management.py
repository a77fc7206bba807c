"""Account management service."""

import logging
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.contrib.auth import get_user_model

from .exceptions import (
    EmailAlreadyInUseError,
    InsufficientPermissionsError,
    UserNotFoundError,
)

User = get_user_model()
logger = logging.getLogger(__name__)

SELF_EDITABLE_FIELDS = {'email', 'first_name', 'last_name', 'password'}


def list_users(*, active_only: bool = False) -> QuerySet:
    """Return users, newest first, optionally only active ones."""
    queryset = User.objects.all()
    if active_only:
        queryset = queryset.filter(is_active=True)
    return queryset


def get_user_by_id(*, user_id: UUID) -> User:
    """
    Get a user by ID.

    Raises:
        UserNotFoundError: If user doesn't exist
    """
    try:
        return User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User {user_id} not found")


@transaction.atomic
def update_user(*, user_id: UUID, updated_by: User, **changes) -> User:
    """
    Update a user's profile, credentials or role.

    Users may edit their own email, names and password. Role and
    activation changes, and edits to other users, need an admin.

    Args:
        user_id: User to update
        updated_by: The acting user
        **changes: Validated fields to apply

    Returns:
        Updated User instance

    Raises:
        UserNotFoundError: If user doesn't exist
        InsufficientPermissionsError: If the acting user may not apply the change
        EmailAlreadyInUseError: If the new email belongs to someone else
    """
    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User {user_id} not found")

    if not updated_by.is_admin:
        if user.id != updated_by.id:
            raise InsufficientPermissionsError("You can only update your own profile")
        if set(changes) - SELF_EDITABLE_FIELDS:
            raise InsufficientPermissionsError("Only admins can change roles or activation")

    email = changes.pop('email', None)
    if email and User.objects.filter(email__iexact=email).exclude(id=user.id).exists():
        raise EmailAlreadyInUseError("Email already in use")
    if email:
        user.email = User.objects.normalize_email(email)

    password = changes.pop('password', None)
    if password:
        user.set_password(password)

    for field, value in changes.items():
        setattr(user, field, value)

    user.save()
    logger.info("User %s updated by %s", user.id, updated_by.id)
    return user
