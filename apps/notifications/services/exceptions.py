"""Domain exceptions for notifications app."""


class NotificationsServiceError(Exception):
    """Base exception for all notifications service errors."""
    pass


class NotificationNotFoundError(NotificationsServiceError):
    """Notification does not exist, has expired or belongs to another user."""
    pass


class InvalidPreferenceError(NotificationsServiceError):
    """Preference value is outside its allowed range."""
    pass
