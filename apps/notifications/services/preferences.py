"""Notification preferences service."""

from django.db import transaction

from apps.accounts.models import User
from ..models import NotificationPreferences
from .exceptions import InvalidPreferenceError

# field -> (min, max) for numeric preferences
RANGES = {
    'pour_reminder_delay_hours': (1, 168),
    'low_stock_threshold': (5, 50),
    'weekly_insight_day': (0, 6),
}

EDITABLE_FIELDS = (
    'pour_reminders',
    'pour_reminder_delay_hours',
    'low_stock_alerts',
    'low_stock_threshold',
    'inactivity_reminders',
    'achievements',
    'weekly_insights',
    'weekly_insight_day',
    'system_notifications',
)


def get_preferences(*, user: User) -> NotificationPreferences:
    """Return the user's preferences, creating the defaults on first access."""
    preferences, _ = NotificationPreferences.objects.get_or_create(user=user)
    return preferences


@transaction.atomic
def update_preferences(*, user: User, **changes) -> NotificationPreferences:
    """
    Update notification switches. Unknown fields are ignored.

    Raises:
        InvalidPreferenceError: If a numeric preference is out of range
    """
    for field, (low, high) in RANGES.items():
        if field in changes and not (low <= changes[field] <= high):
            raise InvalidPreferenceError(f"{field} must be between {low} and {high}")

    get_preferences(user=user)
    preferences = NotificationPreferences.objects.select_for_update().get(user=user)

    update_fields = [field for field in EDITABLE_FIELDS if field in changes]
    for field in update_fields:
        setattr(preferences, field, changes[field])

    if update_fields:
        preferences.save(update_fields=update_fields + ['updated_at'])

    return preferences
