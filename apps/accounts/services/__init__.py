"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserNotFoundError,
    UsernameTakenError,
)
from .profile_management import (
    get_user_by_username,
    update_profile,
)

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserNotFoundError',
    'UsernameTakenError',
    # Services
    'get_user_by_username',
    'update_profile',
]
