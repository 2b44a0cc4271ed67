"""
Notifications services - Business logic layer.

This package contains all business operations for the notifications app:
- Notification creation with cooldown deduplication
- Reads, read flags, deletion and expiry
- Preferences
- Rule registry and scheduled generation
"""

from .notification_management import (
    is_duplicate,
    create_notification,
    get_user_notifications,
    get_unread_count,
    mark_notification_read,
    mark_all_read,
    delete_notification,
    purge_expired_notifications,
)

from .preferences import (
    get_preferences,
    update_preferences,
)

from .rules import (
    Candidate,
    NotificationRule,
    register_rule,
    get_rules,
    get_rule,
    sunday_based_weekday,
)

from .generator import (
    GenerationReport,
    apply_rule,
    generate_all,
    broadcast_system_notification,
)

from .exceptions import (
    NotificationsServiceError,
    NotificationNotFoundError,
    InvalidPreferenceError,
)

__all__ = [
    # Notification management
    'is_duplicate',
    'create_notification',
    'get_user_notifications',
    'get_unread_count',
    'mark_notification_read',
    'mark_all_read',
    'delete_notification',
    'purge_expired_notifications',
    # Preferences
    'get_preferences',
    'update_preferences',
    # Rules
    'Candidate',
    'NotificationRule',
    'register_rule',
    'get_rules',
    'get_rule',
    'sunday_based_weekday',
    # Generation
    'GenerationReport',
    'apply_rule',
    'generate_all',
    'broadcast_system_notification',
    # Exceptions
    'NotificationsServiceError',
    'NotificationNotFoundError',
    'InvalidPreferenceError',
]
