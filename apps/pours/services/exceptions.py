"""Domain exceptions for pours app."""


class PoursServiceError(Exception):
    """Base exception for all pours service errors."""
    pass


class PourNotFoundError(PoursServiceError):
    """Pour does not exist or belongs to another user."""
    pass


class PourSessionNotFoundError(PoursServiceError):
    """Pour session does not exist or belongs to another user."""
    pass


class BottleNotOpenedError(PoursServiceError):
    """Pours can only be logged from opened bottles."""
    pass


class InvalidPourError(PoursServiceError):
    """Amount must be 0.1-10 oz and rating 0-10 with one decimal."""
    pass
