"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
    InsufficientPermissionsError,
)
from .user_registration import register_user
from .user_authentication import authenticate_user
from .account_management import list_users, get_user_by_id, update_user

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'EmailAlreadyInUseError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'UserNotFoundError',
    'InsufficientPermissionsError',
    # Services
    'register_user',
    'authenticate_user',
    'list_users',
    'get_user_by_id',
    'update_user',
]
