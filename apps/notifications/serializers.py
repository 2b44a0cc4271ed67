from rest_framework import serializers
from .models import Notification, NotificationPreferences, NotificationType, NotificationPriority


class NotificationSerializer(serializers.ModelSerializer):

    class Meta:
        model = Notification
        fields = [
            'id',
            'type',
            'priority',
            'title',
            'message',
            'data',
            'read',
            'action_url',
            'icon',
            'expires_at',
            'created_at',
        ]
        read_only_fields = fields


class NotificationCreateSerializer(serializers.Serializer):
    """Client-created notification for the current user."""

    type = serializers.ChoiceField(choices=NotificationType.choices)
    title = serializers.CharField(max_length=200)
    message = serializers.CharField(max_length=1000)
    priority = serializers.ChoiceField(
        choices=NotificationPriority.choices, required=False, default=NotificationPriority.MEDIUM
    )
    data = serializers.JSONField(required=False, allow_null=True, default=None)
    entity_key = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    action_url = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    icon = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class NotificationListResponseSerializer(serializers.Serializer):
    notifications = NotificationSerializer(many=True)
    unread_count = serializers.IntegerField()


class NotificationPreferencesSerializer(serializers.ModelSerializer):

    class Meta:
        model = NotificationPreferences
        fields = [
            'pour_reminders',
            'pour_reminder_delay_hours',
            'low_stock_alerts',
            'low_stock_threshold',
            'inactivity_reminders',
            'achievements',
            'weekly_insights',
            'weekly_insight_day',
            'system_notifications',
            'updated_at',
        ]
        read_only_fields = ['updated_at']


class GenerationReportSerializer(serializers.Serializer):
    created = serializers.IntegerField()
    skipped = serializers.IntegerField()
    failures = serializers.IntegerField()
    purged = serializers.IntegerField()
