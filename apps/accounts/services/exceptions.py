"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class UserNotFoundError(AccountsServiceError):
    """Raised when user does not exist or is inactive."""
    pass


class UsernameTakenError(AccountsServiceError):
    """Raised when the requested username belongs to someone else."""
    pass
