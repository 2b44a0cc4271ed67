"""Domain exceptions for bottles app."""


class BottlesServiceError(Exception):
    """Base exception for all bottles service errors."""
    pass


class MasterBottleNotFoundError(BottlesServiceError):
    """Catalogue bottle does not exist or is inactive."""
    pass


class DuplicateMasterBottleError(BottlesServiceError):
    """A catalogue bottle with this name and distillery already exists."""
    pass


class UserBottleNotFoundError(BottlesServiceError):
    """Bottle does not exist or belongs to another user."""
    pass


class InvalidBottleStateError(BottlesServiceError):
    """Operation is not allowed for the bottle's current status."""
    pass


class InvalidFillLevelError(BottlesServiceError):
    """Fill level must be between 0 and 100."""
    pass


class InvalidLabelFilterError(BottlesServiceError):
    """Unknown label filter or incomplete date range."""
    pass
