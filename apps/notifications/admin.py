# ==========================================
# apps/notifications/admin.py
# ==========================================

from django.contrib import admin
from apps.notifications.models import Notification, NotificationPreferences


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'type', 'priority', 'read', 'created_at', 'expires_at']
    list_filter = ['type', 'priority', 'read', 'created_at']
    search_fields = ['title', 'message', 'user__email', 'entity_key']
    raw_id_fields = ['user']
    readonly_fields = ['created_at']


@admin.register(NotificationPreferences)
class NotificationPreferencesAdmin(admin.ModelAdmin):
    list_display = [
        'user',
        'pour_reminders',
        'low_stock_alerts',
        'inactivity_reminders',
        'achievements',
        'weekly_insights',
        'system_notifications'
    ]
    search_fields = ['user__email']
    raw_id_fields = ['user']
    readonly_fields = ['created_at', 'updated_at']
