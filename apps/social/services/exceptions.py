"""
Domain-specific exceptions for social app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class SocialServiceError(Exception):
    """Base exception for all social service errors."""
    pass


class RecipientNotFoundError(SocialServiceError):
    """Raised when no user matches the friend request target."""
    pass


class RecipientProfileIncompleteError(SocialServiceError):
    """Raised when the target user has not chosen a username yet."""
    pass


class SelfFriendRequestError(SocialServiceError):
    """Raised when a user sends a friend request to themselves."""
    pass


class FriendshipExistsError(SocialServiceError):
    """Raised when the two users already have a pending, accepted or blocked friendship."""
    pass


class FriendRequestNotFoundError(SocialServiceError):
    """Raised when a pending request does not exist or is not addressed to the user."""
    pass


class FriendshipNotFoundError(SocialServiceError):
    """Raised when a friendship does not exist or the user is not part of it."""
    pass


class ProfileNotFoundError(SocialServiceError):
    """Raised when no user has the requested username."""
    pass


class ProfilePrivateError(SocialServiceError):
    """Raised when privacy settings hide the requested data from the viewer."""
    pass


class PourNotVisibleError(SocialServiceError):
    """Raised when a pour does not exist or is hidden from the viewer."""
    pass


class CannotCheerOwnPourError(SocialServiceError):
    """Raised when a user cheers their own pour."""
    pass


class AlreadyCheeredError(SocialServiceError):
    """Raised when a user cheers the same pour twice."""
    pass


class InvalidFeedFilterError(SocialServiceError):
    """Raised when the feed filter or paging parameters are invalid."""
    pass
