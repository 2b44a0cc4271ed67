from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    # GET    /api/notifications/                - List + unread count
    # POST   /api/notifications/                - Create for current user
    path('notifications/', views.notifications, name='notification-list'),
    path('notifications/read-all/', views.mark_all_read, name='notification-read-all'),
    path('notifications/preferences/', views.preferences, name='notification-preferences'),
    path('notifications/<str:notification_id>/read/', views.mark_read, name='notification-read'),
    path('notifications/<str:notification_id>/', views.delete_notification, name='notification-delete'),

    # Scheduled generation (Bearer CRON_SECRET)
    path('cron/notifications/', views.cron_notifications, name='cron-notifications'),
]
