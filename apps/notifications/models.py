# ==========================================
# apps/notifications/models.py
# ==========================================

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
import uuid


class NotificationType(models.TextChoices):
    POUR_REMINDER = 'pour_reminder', 'Pour Reminder'
    LOW_STOCK = 'low_stock', 'Low Stock'
    INACTIVITY_REMINDER = 'inactivity_reminder', 'Inactivity Reminder'
    ACHIEVEMENT = 'achievement', 'Achievement'
    WEEKLY_INSIGHT = 'weekly_insight', 'Weekly Insight'
    NEW_FEATURE = 'new_feature', 'New Feature'
    SYSTEM = 'system', 'System'
    FRIEND_REQUEST = 'friend_request', 'Friend Request'
    FRIEND_REQUEST_ACCEPTED = 'friend_request_accepted', 'Friend Request Accepted'
    POUR_CHEERS = 'pour_cheers', 'Pour Cheers'
    BOTTLE_RATING = 'bottle_rating', 'Bottle Rating'


class NotificationPriority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'


class NotificationQuerySet(models.QuerySet):

    def active(self, now=None):
        """Exclude expired notifications."""
        now = now or timezone.now()
        return self.filter(models.Q(expires_at__isnull=True) | models.Q(expires_at__gt=now))


class Notification(models.Model):
    """In-app notification for one user."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=30, choices=NotificationType.choices)
    priority = models.CharField(max_length=10, choices=NotificationPriority.choices, default=NotificationPriority.MEDIUM)
    title = models.CharField(max_length=200)
    message = models.CharField(max_length=1000)
    data = models.JSONField(null=True, blank=True)
    # Identifier of the triggering entity, used to deduplicate within a cooldown
    entity_key = models.CharField(max_length=100, blank=True, db_index=True)
    read = models.BooleanField(default=False)
    action_url = models.CharField(max_length=500, blank=True)
    icon = models.CharField(max_length=50, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'created_at']),
            models.Index(fields=['user', 'read']),
            models.Index(fields=['user', 'type', 'entity_key']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.type}: {self.title}"


def _default_low_stock_threshold():
    return settings.NOTIFICATIONS['LOW_STOCK_THRESHOLD_PERCENT']


def _default_pour_reminder_delay():
    return settings.NOTIFICATIONS['POUR_REMINDER_DELAY_HOURS']


def _default_weekly_insight_day():
    return settings.NOTIFICATIONS['WEEKLY_INSIGHT_DAY']


class NotificationPreferences(models.Model):
    """Per-user notification switches. Created lazily with defaults."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField('accounts.User', on_delete=models.CASCADE, related_name='notification_preferences')
    pour_reminders = models.BooleanField(default=True)
    pour_reminder_delay_hours = models.PositiveSmallIntegerField(
        default=_default_pour_reminder_delay,
        validators=[MinValueValidator(1), MaxValueValidator(168)],
    )
    low_stock_alerts = models.BooleanField(default=True)
    low_stock_threshold = models.PositiveSmallIntegerField(
        default=_default_low_stock_threshold,
        validators=[MinValueValidator(5), MaxValueValidator(50)],
    )
    inactivity_reminders = models.BooleanField(default=True)
    achievements = models.BooleanField(default=True)
    weekly_insights = models.BooleanField(default=True)
    # 0 = Sunday ... 6 = Saturday
    weekly_insight_day = models.PositiveSmallIntegerField(
        default=_default_weekly_insight_day,
        validators=[MinValueValidator(0), MaxValueValidator(6)],
    )
    system_notifications = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'notification_preferences'
        verbose_name_plural = 'notification preferences'

    def __str__(self):
        return f"Notification preferences of {self.user}"
